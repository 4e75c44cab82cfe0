"""
Module: quality_kernel.models.record
Responsibility: ORM persistence for workflow records (observations,
    trainings, tasks) and their append-only side records: work log entries,
    status history and comments.
Architecture position: Kernel > Models.  May import from db/base.py and
    exceptions.py.  Domain DTOs are imported lazily inside to_dto/from_dto.

Invariants enforced:
    - status is a member of the kind's vocabulary (ck_records_status_for_kind).
    - report_number is unique per (project, kind) and never updated by the
      engine (no patch path writes it).
    - version is SQLAlchemy's version_id_col: every UPDATE carries
      ``WHERE version = :old`` and a stale write raises StaleDataError,
      translated to ConflictError by the record store.
    - Work log and history rows are append-only (ORM listeners below).

Failure modes:
    - IntegrityError on duplicate report number or unknown project_id.
    - ImmutabilityViolationError on UPDATE/DELETE of work log or history rows.

Audit relevance:
    The history table is the audit trail of a record: one row per create and
    per transition, carrying actor, action, both statuses and notes (the
    rejection or cancellation reason).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from quality_kernel.db.base import Base, UUIDString
from quality_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from quality_kernel.domain.records import (
        Comment,
        HistoryEntry,
        Record,
        WorkLogEntry,
    )


class RecordModel(Base):
    """Persistent workflow record.

    Contract:
        Status changes only through the workflow engine; each change bumps
        ``version``.

    Guarantees:
        - (kind, status) pairs are constrained at the database level.
        - assigned_actor_ids keeps slot order (JSON array of UUID strings).
    """

    __tablename__ = "workflow_records"

    __table_args__ = (
        CheckConstraint(
            "kind IN ('observation', 'training', 'task')",
            name="ck_records_valid_kind",
        ),
        CheckConstraint(
            "(kind = 'observation' AND status IN ('pre_approval', "
            "'waiting_data_entry', 'open', 'waiting_close_approval', "
            "'closed_on_time', 'closed_late')) "
            "OR (kind = 'training' AND status IN ('planned', "
            "'awaiting_approval', 'completed', 'cancelled')) "
            "OR (kind = 'task' AND status IN ('open', 'in_progress', "
            "'pending_approval', 'closed'))",
            name="ck_records_status_for_kind",
        ),
        CheckConstraint(
            "closure_outcome IS NULL OR closure_outcome IN ('on_time', 'late')",
            name="ck_records_closure_outcome",
        ),
        UniqueConstraint(
            "project_id", "kind", "report_number",
            name="uq_records_report_number",
        ),
        Index("ix_records_project_kind_status", "project_id", "kind", "status"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    report_number: Mapped[str] = mapped_column(String(40), nullable=False)
    creator_actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    assigned_actor_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list,
    )
    organizer_actor_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    planned_close_date: Mapped[date | None] = mapped_column(nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    closure_outcome: Mapped[str | None] = mapped_column(String(20), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by_actor_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True,
    )
    details: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Record {self.report_number} {self.kind} "
            f"status={self.status} v{self.version}>"
        )

    def to_dto(self) -> Record:
        """Convert ORM model to frozen domain DTO."""
        from quality_kernel.domain.records import (
            ClosureOutcome,
            Record as RecordDTO,
            RecordKind,
        )

        return RecordDTO(
            id=self.id,
            project_id=self.project_id,
            kind=RecordKind(self.kind),
            status=self.status,
            creator_actor_id=self.creator_actor_id,
            report_number=self.report_number,
            created_at=self.created_at,
            version=self.version,
            assigned_actor_ids=tuple(UUID(a) for a in self.assigned_actor_ids or ()),
            organizer_actor_id=self.organizer_actor_id,
            planned_close_date=self.planned_close_date,
            closed_at=self.closed_at,
            closure_outcome=(
                ClosureOutcome(self.closure_outcome) if self.closure_outcome else None
            ),
            rejection_reason=self.rejection_reason,
            cancellation_reason=self.cancellation_reason,
            cancelled_by_actor_id=self.cancelled_by_actor_id,
            details=dict(self.details or {}),
        )

    @classmethod
    def from_dto(cls, dto: Record) -> RecordModel:
        """Create ORM model from domain DTO."""
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            kind=dto.kind.value,
            status=dto.status,
            report_number=dto.report_number,
            creator_actor_id=dto.creator_actor_id,
            assigned_actor_ids=[str(a) for a in dto.assigned_actor_ids],
            organizer_actor_id=dto.organizer_actor_id,
            created_at=dto.created_at,
            planned_close_date=dto.planned_close_date,
            closed_at=dto.closed_at,
            closure_outcome=dto.closure_outcome.value if dto.closure_outcome else None,
            rejection_reason=dto.rejection_reason,
            cancellation_reason=dto.cancellation_reason,
            cancelled_by_actor_id=dto.cancelled_by_actor_id,
            details=dict(dto.details),
        )


class RecordWorkLogModel(Base):
    """Work performed on a task before it was submitted. Append-only."""

    __tablename__ = "record_work_logs"

    __table_args__ = (
        Index("ix_record_work_logs_record", "record_id", "created_at"),
        CheckConstraint("length(description) > 0", name="ck_work_log_description"),
    )

    record_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_records.id"), nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> WorkLogEntry:
        from quality_kernel.domain.records import WorkLogEntry

        return WorkLogEntry(
            id=self.id,
            record_id=self.record_id,
            actor_id=self.actor_id,
            description=self.description,
            created_at=self.created_at,
        )


class RecordHistoryModel(Base):
    """One status change (or creation) of a record. Append-only."""

    __tablename__ = "record_history"

    __table_args__ = (
        UniqueConstraint("record_id", "position", name="uq_record_history_position"),
    )

    record_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_records.id"), nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    # 1-based order of this entry within the record's history
    position: Mapped[int] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    old_status: Mapped[str | None] = mapped_column(String(40), nullable=True)
    new_status: Mapped[str] = mapped_column(String(40), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> HistoryEntry:
        from quality_kernel.domain.records import HistoryEntry

        return HistoryEntry(
            id=self.id,
            record_id=self.record_id,
            actor_id=self.actor_id,
            action=self.action,
            old_status=self.old_status,
            new_status=self.new_status,
            notes=self.notes,
            created_at=self.created_at,
        )


class RecordCommentModel(Base):
    __tablename__ = "record_comments"

    __table_args__ = (
        Index("ix_record_comments_record", "record_id", "created_at"),
    )

    record_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_records.id"), nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> Comment:
        from quality_kernel.domain.records import Comment

        return Comment(
            id=self.id,
            record_id=self.record_id,
            actor_id=self.actor_id,
            text=self.text,
            created_at=self.created_at,
        )


# =============================================================================
# ORM-Level Immutability for Audit Side Records (Append-Only)
# =============================================================================


def _forbid(entity_type: str, verb: str):
    def listener(mapper, connection, target):
        raise ImmutabilityViolationError(
            entity_type=entity_type,
            entity_id=str(target.id),
            reason=f"{entity_type} rows are append-only -- cannot {verb}",
        )
    return listener


event.listen(RecordWorkLogModel, "before_update", _forbid("WorkLogEntry", "modify"))
event.listen(RecordWorkLogModel, "before_delete", _forbid("WorkLogEntry", "delete"))
event.listen(RecordHistoryModel, "before_update", _forbid("HistoryEntry", "modify"))
event.listen(RecordHistoryModel, "before_delete", _forbid("HistoryEntry", "delete"))
