"""Field training module."""

from quality_kernel.domain.records import RecordKind
from quality_modules.definition import KindDefinition
from quality_modules.training.payloads import ACTION_HANDLERS, validate_create
from quality_modules.training.workflows import TRAINING_WORKFLOW

TRAINING_DEFINITION = KindDefinition(
    kind=RecordKind.TRAINING,
    workflow=TRAINING_WORKFLOW,
    validate_create=validate_create,
    action_handlers=ACTION_HANDLERS,
)

__all__ = ["TRAINING_DEFINITION", "TRAINING_WORKFLOW"]
