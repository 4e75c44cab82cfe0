"""
Record domain types (``quality_kernel.domain.records``).

Responsibility
--------------
Pure value objects for tracked workflow items: the three record kinds,
their closed status vocabularies, the immutable ``Record`` snapshot and
the side records written alongside transitions (work log, history,
comments).  Also declares the ``RecordStore`` protocol the engine
persists through.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``models/``, or outer layers.

Invariants enforced
-------------------
* Each kind's status is a closed ``str`` enum listed in ``STATUS_ENUMS``;
  registered workflow graphs must cover exactly its members.
* ``Record`` is frozen -- every change goes through ``RecordStore.update``
  and yields a new snapshot with an incremented ``version``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID


class RecordKind(str, Enum):
    """The record's type; selects its state graph and capability rules."""

    OBSERVATION = "observation"
    TRAINING = "training"
    TASK = "task"


# =========================================================================
# Status vocabularies
# =========================================================================


class ObservationStatus(str, Enum):
    """Field observation (nonconformity) report lifecycle."""

    PRE_APPROVAL = "pre_approval"
    WAITING_DATA_ENTRY = "waiting_data_entry"
    OPEN = "open"
    WAITING_CLOSE_APPROVAL = "waiting_close_approval"
    CLOSED_ON_TIME = "closed_on_time"
    CLOSED_LATE = "closed_late"


class TrainingStatus(str, Enum):
    """Field training lifecycle."""

    PLANNED = "planned"
    AWAITING_APPROVAL = "awaiting_approval"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    """Maintenance task lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING_APPROVAL = "pending_approval"
    CLOSED = "closed"


STATUS_ENUMS: dict[RecordKind, type[Enum]] = {
    RecordKind.OBSERVATION: ObservationStatus,
    RecordKind.TRAINING: TrainingStatus,
    RecordKind.TASK: TaskStatus,
}


class ClosureOutcome(str, Enum):
    """Result of comparing the closure day with the planned close date."""

    ON_TIME = "on_time"
    LATE = "late"


# =========================================================================
# Record snapshot
# =========================================================================


@dataclass(frozen=True)
class Record:
    """Immutable snapshot of one tracked workflow item.

    ``report_number`` is set once at creation.  ``version`` starts at 1 and
    increases on every persisted change.
    """

    id: UUID
    project_id: UUID
    kind: RecordKind
    status: str
    creator_actor_id: UUID
    report_number: str
    created_at: datetime
    version: int = 1
    assigned_actor_ids: tuple[UUID, ...] = ()
    organizer_actor_id: UUID | None = None
    planned_close_date: date | None = None
    closed_at: datetime | None = None
    closure_outcome: ClosureOutcome | None = None
    rejection_reason: str | None = None
    cancellation_reason: str | None = None
    cancelled_by_actor_id: UUID | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def is_assigned(self, actor_id: UUID) -> bool:
        return actor_id in self.assigned_actor_ids


# Fields a RecordStore.update patch may touch.  id, project_id, kind,
# creator and report_number are fixed at creation.
PATCHABLE_FIELDS: frozenset[str] = frozenset({
    "status",
    "assigned_actor_ids",
    "organizer_actor_id",
    "planned_close_date",
    "closed_at",
    "closure_outcome",
    "rejection_reason",
    "cancellation_reason",
    "cancelled_by_actor_id",
    "details",
})


# =========================================================================
# Side records
# =========================================================================


@dataclass(frozen=True)
class WorkLogEntry:
    """Work performed by an assigned actor before submitting for approval."""

    id: UUID
    record_id: UUID
    actor_id: UUID
    description: str
    created_at: datetime


@dataclass(frozen=True)
class HistoryEntry:
    """One audit-trail line: who moved the record from where to where."""

    id: UUID
    record_id: UUID
    actor_id: UUID
    action: str
    old_status: str | None
    new_status: str
    notes: str | None
    created_at: datetime


@dataclass(frozen=True)
class Comment:
    """Free-text discussion attached to a record."""

    id: UUID
    record_id: UUID
    actor_id: UUID
    text: str
    created_at: datetime


# =========================================================================
# RecordStore protocol
# =========================================================================


class RecordStore(Protocol):
    """Persistence collaborator for records and their side records.

    Implementations never commit; the caller owns the transaction so a
    record update and its side records land together.
    """

    def get(self, record_id: UUID) -> Record:
        """Return the record or raise RecordNotFoundError."""
        ...

    def create(self, record: Record) -> Record:
        ...

    def update(
        self,
        record_id: UUID,
        patch: Mapping[str, Any],
        expected_version: int,
    ) -> Record:
        """Apply ``patch`` iff the stored version equals ``expected_version``.

        Raises ConflictError otherwise.
        """
        ...

    def query(
        self,
        project_id: UUID,
        kind: RecordKind | None = None,
        statuses: Iterable[str] | None = None,
    ) -> Iterable[Record]:
        ...

    def append_work_log(
        self, record_id: UUID, actor_id: UUID, description: str, at: datetime,
    ) -> WorkLogEntry:
        ...

    def append_history(
        self,
        record_id: UUID,
        actor_id: UUID,
        action: str,
        old_status: str | None,
        new_status: str,
        notes: str | None,
        at: datetime,
    ) -> HistoryEntry:
        ...

    def add_comment(
        self, record_id: UUID, actor_id: UUID, text: str, at: datetime,
    ) -> Comment:
        ...

    def work_logs(self, record_id: UUID) -> list[WorkLogEntry]:
        ...

    def history(self, record_id: UUID) -> list[HistoryEntry]:
        ...

    def comments(self, record_id: UUID) -> list[Comment]:
        ...
