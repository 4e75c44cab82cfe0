"""Field observation (nonconformity report) module."""

from quality_kernel.domain.records import RecordKind
from quality_modules.definition import KindDefinition
from quality_modules.observation.payloads import ACTION_HANDLERS, validate_create
from quality_modules.observation.workflows import OBSERVATION_WORKFLOW

OBSERVATION_DEFINITION = KindDefinition(
    kind=RecordKind.OBSERVATION,
    workflow=OBSERVATION_WORKFLOW,
    validate_create=validate_create,
    action_handlers=ACTION_HANDLERS,
)

__all__ = ["OBSERVATION_DEFINITION", "OBSERVATION_WORKFLOW"]
