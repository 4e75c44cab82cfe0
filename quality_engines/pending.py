"""
quality_engines.pending -- which records need a given actor right now.

Responsibility:
    The single per-status predicate table behind dashboards and badge
    counts.  ``is_pending(context, record)`` answers "does this record wait
    on this actor?"; the PendingActionResolver applies it to store queries.

Architecture position:
    Engines -- pure decision layer, zero I/O.
    May only import quality_kernel/domain/ types.

Invariants enforced:
    - An actor without the kind's ``access`` capability (and not admin or
      project owner) is never pending for that kind.
    - Terminal statuses have no row and are never pending.
    - ``admin_or_owner=False`` rows (the organizer of a planned training,
      the assignee of an open task) wait on that specific person only;
      admins are not nagged about work they are not doing.
"""

from __future__ import annotations

from dataclasses import dataclass

from quality_engines.authorizer import parties_of
from quality_kernel.domain.authorization import (
    APPROVER,
    MANAGER,
    PLANNER,
    AuthorizationContext,
    Party,
    capability,
)
from quality_kernel.domain.records import (
    ObservationStatus,
    Record,
    RecordKind,
    TaskStatus,
    TrainingStatus,
)


@dataclass(frozen=True)
class PendingRule:
    capabilities: frozenset[str] = frozenset()
    parties: frozenset[Party] = frozenset()
    admin_or_owner: bool = True


_APPROVER = capability(RecordKind.OBSERVATION, APPROVER)
_PLANNER = capability(RecordKind.TRAINING, PLANNER)
_MANAGER = capability(RecordKind.TASK, MANAGER)

# (kind, status) -> PendingRule
PENDING_RULES: dict[tuple[RecordKind, str], PendingRule] = {
    (RecordKind.OBSERVATION, ObservationStatus.PRE_APPROVAL.value): PendingRule(
        capabilities=frozenset({_APPROVER}),
    ),
    (RecordKind.OBSERVATION, ObservationStatus.WAITING_DATA_ENTRY.value): PendingRule(
        parties=frozenset({Party.ASSIGNED}),
    ),
    (RecordKind.OBSERVATION, ObservationStatus.OPEN.value): PendingRule(
        parties=frozenset({Party.ASSIGNED}),
    ),
    (RecordKind.OBSERVATION, ObservationStatus.WAITING_CLOSE_APPROVAL.value): PendingRule(
        capabilities=frozenset({_APPROVER}),
        parties=frozenset({Party.CREATOR}),
    ),
    (RecordKind.TRAINING, TrainingStatus.PLANNED.value): PendingRule(
        parties=frozenset({Party.ORGANIZER}),
        admin_or_owner=False,
    ),
    (RecordKind.TRAINING, TrainingStatus.AWAITING_APPROVAL.value): PendingRule(
        capabilities=frozenset({_PLANNER}),
    ),
    (RecordKind.TASK, TaskStatus.OPEN.value): PendingRule(
        parties=frozenset({Party.ASSIGNED}),
        admin_or_owner=False,
    ),
    (RecordKind.TASK, TaskStatus.IN_PROGRESS.value): PendingRule(
        parties=frozenset({Party.ASSIGNED}),
        admin_or_owner=False,
    ),
    (RecordKind.TASK, TaskStatus.PENDING_APPROVAL.value): PendingRule(
        capabilities=frozenset({_MANAGER}),
        parties=frozenset({Party.CREATOR}),
    ),
}


def pending_statuses(kind: RecordKind) -> tuple[str, ...]:
    """Statuses of ``kind`` that can be pending for somebody."""
    kind = RecordKind(kind)
    return tuple(status for (k, status) in PENDING_RULES if k == kind)


def is_pending(context: AuthorizationContext, record: Record) -> bool:
    if not context.has_access(record.kind):
        return False

    rule = PENDING_RULES.get((record.kind, record.status))
    if rule is None:
        return False

    if rule.admin_or_owner and context.is_admin_or_owner():
        return True
    if any(context.has(c) for c in rule.capabilities):
        return True
    return bool(rule.parties & parties_of(context, record))
