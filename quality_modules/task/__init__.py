"""Maintenance task module."""

from quality_kernel.domain.records import RecordKind
from quality_modules.definition import KindDefinition
from quality_modules.task.payloads import ACTION_HANDLERS, validate_create
from quality_modules.task.workflows import TASK_WORKFLOW

TASK_DEFINITION = KindDefinition(
    kind=RecordKind.TASK,
    workflow=TASK_WORKFLOW,
    validate_create=validate_create,
    action_handlers=ACTION_HANDLERS,
)

__all__ = ["TASK_DEFINITION", "TASK_WORKFLOW"]
