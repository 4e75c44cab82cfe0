"""
Kind definitions (``quality_modules.definition``).

Responsibility
--------------
Bundles everything the workflow engine needs to know about one record
kind: its state graph, its creation validator and one payload handler per
action.  ``validate_definition`` checks a bundle at registration time so a
malformed graph fails on import, not on the first request that hits it.

Architecture position
---------------------
**Modules layer** -- declarative.  Imports kernel domain types and the
authorization requirement table from ``quality_engines``.

Invariants enforced
-------------------
* The graph passes ``validate_workflow`` against the kind's status enum
  (exhaustive in both directions).
* Every action in the graph has a payload handler and an authorization
  requirement; no handler exists for an action the graph lacks.
* The kind has a ``create`` authorization requirement.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from quality_engines.authorizer import CREATE_ACTION, TRANSITION_REQUIREMENTS, Requirement
from quality_kernel.domain.records import STATUS_ENUMS, RecordKind
from quality_kernel.domain.workflow import Workflow, validate_workflow
from quality_kernel.exceptions import WorkflowDefinitionError
from quality_modules._payload import ActionHandler, CreateHandler


@dataclass(frozen=True)
class KindDefinition:
    kind: RecordKind
    workflow: Workflow
    validate_create: CreateHandler
    action_handlers: Mapping[str, ActionHandler]


def validate_definition(
    definition: KindDefinition,
    requirements: Mapping[tuple[RecordKind, str], Requirement] | None = None,
) -> KindDefinition:
    requirements = TRANSITION_REQUIREMENTS if requirements is None else requirements
    workflow = definition.workflow
    validate_workflow(workflow, STATUS_ENUMS[definition.kind])

    actions = workflow.actions
    handlers = set(definition.action_handlers)
    if actions - handlers:
        raise WorkflowDefinitionError(
            workflow.name, f"actions without payload handler: {sorted(actions - handlers)}",
        )
    if handlers - actions:
        raise WorkflowDefinitionError(
            workflow.name, f"handlers for unknown actions: {sorted(handlers - actions)}",
        )

    unguarded = sorted(
        a for a in actions | {CREATE_ACTION}
        if (definition.kind, a) not in requirements
    )
    if unguarded:
        raise WorkflowDefinitionError(
            workflow.name, f"actions without authorization rule: {unguarded}",
        )
    return definition
