"""
Canonical workflow types (``quality_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for record state machines.  Every record kind declares
its lifecycle as a ``Workflow`` built from ``Transition`` edges, so adding
or removing an edge (for example a rejection path) is a data change and
never touches authorization or engine code.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``models/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* Edges sharing ``(from_state, action)`` must be distinguished by
  ``closure_outcome``; any other duplicate is ambiguous.
* ``validate_workflow`` additionally checks the state set against the
  kind's status enum in both directions (exhaustiveness).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from quality_kernel.domain.records import ClosureOutcome
from quality_kernel.exceptions import WorkflowDefinitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    Contract: frozen.
    ``requires_reason=True`` makes a non-empty ``reason`` payload mandatory
    (reject, cancel).  ``closes=True`` stamps ``closed_at`` and runs the
    deadline classification.  ``closure_outcome`` marks one of several
    edges sharing ``(from_state, action)``; the classification result picks
    the edge.  ``clears_rejection=True`` resets ``rejection_reason`` when
    the rejected party resubmits.
    """
    from_state: str
    to_state: str
    action: str
    requires_reason: bool = False
    closes: bool = False
    closure_outcome: ClosureOutcome | None = None
    clears_rejection: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a record lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def edges_from(self, state: str, action: str) -> tuple[Transition, ...]:
        return tuple(
            t for t in self.transitions
            if t.from_state == state and t.action == action
        )

    def actions_from(self, state: str) -> tuple[str, ...]:
        """Distinct action names leaving ``state``, in declaration order."""
        seen: dict[str, None] = {}
        for t in self.transitions:
            if t.from_state == state:
                seen.setdefault(t.action, None)
        return tuple(seen)

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(t.action for t in self.transitions)


def validate_workflow(
    workflow: Workflow,
    status_enum: type[Enum] | None = None,
) -> Workflow:
    """Check a workflow's structural invariants and return it unchanged.

    Raises:
        WorkflowDefinitionError: on the first violated invariant.
    """
    states = set(workflow.states)

    def fail(reason: str) -> None:
        raise WorkflowDefinitionError(workflow.name, reason)

    if len(states) != len(workflow.states):
        fail("duplicate state names")
    if workflow.initial_state not in states:
        fail(f"initial state {workflow.initial_state!r} is not a declared state")
    for terminal in workflow.terminal_states:
        if terminal not in states:
            fail(f"terminal state {terminal!r} is not a declared state")

    for t in workflow.transitions:
        for state in (t.from_state, t.to_state):
            if state not in states:
                fail(f"transition {t.action!r} references unknown state {state!r}")
        if t.from_state in workflow.terminal_states:
            fail(f"terminal state {t.from_state!r} has outgoing transition {t.action!r}")
        if t.closure_outcome is not None and not t.closes:
            fail(f"transition {t.action!r} has a closure outcome but does not close")

    _check_edge_ambiguity(workflow, fail)

    if status_enum is not None:
        enum_values = {member.value for member in status_enum}
        missing = enum_values - states
        extra = states - enum_values
        if missing:
            fail(f"statuses not covered by the graph: {sorted(missing)}")
        if extra:
            fail(f"states outside the status vocabulary: {sorted(extra)}")

    return workflow


def _check_edge_ambiguity(workflow: Workflow, fail) -> None:
    groups: dict[tuple[str, str], list[Transition]] = {}
    for t in workflow.transitions:
        groups.setdefault((t.from_state, t.action), []).append(t)

    for (state, action), edges in groups.items():
        if len(edges) == 1:
            continue
        outcomes = [e.closure_outcome for e in edges]
        if None in outcomes or len(set(outcomes)) != len(outcomes):
            fail(f"ambiguous edges for action {action!r} from {state!r}")
        if set(outcomes) != set(ClosureOutcome):
            fail(f"action {action!r} from {state!r} does not cover every closure outcome")


def reachable_states(workflow: Workflow) -> frozenset[str]:
    """States reachable from the initial state."""
    frontier: list[str] = [workflow.initial_state]
    seen: set[str] = set(frontier)
    while frontier:
        state = frontier.pop()
        for t in workflow.transitions:
            if t.from_state == state and t.to_state not in seen:
                seen.add(t.to_state)
                frontier.append(t.to_state)
    return frozenset(seen)


def states_of(values: Iterable[Enum]) -> tuple[str, ...]:
    """Tuple of enum values, in declaration order, for ``Workflow.states``."""
    return tuple(v.value for v in values)
