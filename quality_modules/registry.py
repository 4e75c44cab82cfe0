"""
Kind registry (``quality_modules.registry``).

Responsibility
--------------
Single lookup from ``RecordKind`` to its ``KindDefinition``.  Every
built-in definition is validated when this module is imported, so a graph
that misses a status, references an unknown one, or lacks an
authorization rule stops the process at start-up.

Architecture position
---------------------
**Modules layer**.  The workflow engine receives definitions from here;
nothing else in the modules layer imports it.
"""

from __future__ import annotations

from collections.abc import Iterable

from quality_kernel.domain.records import RecordKind
from quality_kernel.domain.workflow import Workflow
from quality_kernel.logging_config import get_logger
from quality_modules.definition import KindDefinition, validate_definition
from quality_modules.observation import OBSERVATION_DEFINITION
from quality_modules.task import TASK_DEFINITION
from quality_modules.training import TRAINING_DEFINITION

logger = get_logger("modules.registry")


class KindRegistry:
    """Validated ``RecordKind -> KindDefinition`` mapping."""

    def __init__(self, definitions: Iterable[KindDefinition] = ()):
        self._definitions: dict[RecordKind, KindDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: KindDefinition) -> None:
        validate_definition(definition)
        self._definitions[definition.kind] = definition
        logger.debug(
            "kind_registered",
            extra={
                "kind": definition.kind.value,
                "workflow_name": definition.workflow.name,
                "actions": sorted(definition.workflow.actions),
            },
        )

    def get(self, kind: RecordKind | str) -> KindDefinition:
        return self._definitions[RecordKind(kind)]

    def workflow(self, kind: RecordKind | str) -> Workflow:
        return self.get(kind).workflow

    def kinds(self) -> tuple[RecordKind, ...]:
        return tuple(self._definitions)


DEFAULT_REGISTRY = KindRegistry((
    OBSERVATION_DEFINITION,
    TRAINING_DEFINITION,
    TASK_DEFINITION,
))


def get_definition(kind: RecordKind | str) -> KindDefinition:
    return DEFAULT_REGISTRY.get(kind)


def get_workflow(kind: RecordKind | str) -> Workflow:
    return DEFAULT_REGISTRY.workflow(kind)
