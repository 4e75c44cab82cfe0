"""
SqlRecordStore -- SQLAlchemy implementation of the RecordStore protocol.

Responsibility:
    Generic CRUD and filtered queries over workflow records, plus the
    append-only side records (work log, history, comments) written in the
    same transaction as the record mutation that produced them.

Architecture position:
    Kernel > Services -- imperative shell.  Converts between ORM models and
    frozen domain DTOs; nothing above this layer sees an ORM object.

Invariants enforced:
    - Optimistic concurrency: ``update`` compares the stored version with
      ``expected_version`` before touching the row, and the ORM's
      version_id_col re-checks it in the UPDATE's WHERE clause.  Either
      failure surfaces as ConflictError.
    - Only PATCHABLE_FIELDS may be written by ``update``; id, kind, project,
      creator and report_number are fixed at creation.

Failure modes:
    - RecordNotFoundError for unknown ids.
    - ConflictError on version mismatch or a lost UPDATE race.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from quality_kernel.domain.records import (
    PATCHABLE_FIELDS,
    ClosureOutcome,
    Comment,
    HistoryEntry,
    Record,
    RecordKind,
    WorkLogEntry,
)
from quality_kernel.exceptions import ConflictError, RecordNotFoundError
from quality_kernel.logging_config import get_logger
from quality_kernel.models.record import (
    RecordCommentModel,
    RecordHistoryModel,
    RecordModel,
    RecordWorkLogModel,
)
from quality_kernel.services.base import BaseService

logger = get_logger("services.record_store")


def _to_column(field_name: str, value: Any) -> Any:
    if field_name == "assigned_actor_ids":
        return [str(a) for a in value]
    if field_name == "closure_outcome" and isinstance(value, ClosureOutcome):
        return value.value
    if field_name == "details":
        return dict(value)
    return value


class SqlRecordStore(BaseService):
    """RecordStore backed by the ``workflow_records`` table family."""

    def __init__(self, session: Session):
        super().__init__(session)

    def _load(self, record_id: UUID) -> RecordModel:
        model = self.session.execute(
            select(RecordModel)
            .where(RecordModel.id == record_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if model is None:
            raise RecordNotFoundError(str(record_id))
        return model

    def get(self, record_id: UUID) -> Record:
        return self._load(record_id).to_dto()

    def create(self, record: Record) -> Record:
        model = RecordModel.from_dto(record)
        self.session.add(model)
        self.session.flush()
        return model.to_dto()

    def update(
        self,
        record_id: UUID,
        patch: Mapping[str, Any],
        expected_version: int,
    ) -> Record:
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not patchable: {sorted(unknown)}")

        model = self._load(record_id)
        if model.version != expected_version:
            raise ConflictError(
                "Record", str(record_id),
                expected_version=expected_version,
                actual_version=model.version,
            )

        for field_name, value in patch.items():
            setattr(model, field_name, _to_column(field_name, value))

        try:
            self.session.flush()
        except StaleDataError as exc:
            logger.warning(
                "record_update_stale",
                extra={"record_id": str(record_id), "expected_version": expected_version},
            )
            raise ConflictError(
                "Record", str(record_id), expected_version=expected_version,
            ) from exc

        return model.to_dto()

    def query(
        self,
        project_id: UUID,
        kind: RecordKind | None = None,
        statuses: Iterable[str] | None = None,
    ) -> list[Record]:
        stmt = select(RecordModel).where(RecordModel.project_id == project_id)
        if kind is not None:
            stmt = stmt.where(RecordModel.kind == RecordKind(kind).value)
        if statuses is not None:
            values = [getattr(s, "value", s) for s in statuses]
            stmt = stmt.where(RecordModel.status.in_(values))
        stmt = stmt.order_by(RecordModel.created_at, RecordModel.report_number)
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    # ------------------------------------------------------------------
    # Side records
    # ------------------------------------------------------------------

    def append_work_log(
        self, record_id: UUID, actor_id: UUID, description: str, at: datetime,
    ) -> WorkLogEntry:
        row = RecordWorkLogModel(
            record_id=record_id, actor_id=actor_id, description=description, created_at=at,
        )
        self.session.add(row)
        self.session.flush()
        return row.to_dto()

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
        position = self.session.execute(
            select(func.count())
            .select_from(RecordHistoryModel)
            .where(RecordHistoryModel.record_id == record_id)
        ).scalar_one() + 1
        row = RecordHistoryModel(
            record_id=record_id,
            position=position,
            actor_id=actor_id,
            action=action,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
            created_at=at,
        )
        self.session.add(row)
        self.session.flush()
        return row.to_dto()

    def add_comment(
        self, record_id: UUID, actor_id: UUID, text: str, at: datetime,
    ) -> Comment:
        row = RecordCommentModel(record_id=record_id, actor_id=actor_id, text=text, created_at=at)
        self.session.add(row)
        self.session.flush()
        return row.to_dto()

    def work_logs(self, record_id: UUID) -> list[WorkLogEntry]:
        rows = self.session.execute(
            select(RecordWorkLogModel)
            .where(RecordWorkLogModel.record_id == record_id)
            .order_by(RecordWorkLogModel.created_at)
        ).scalars()
        return [r.to_dto() for r in rows]

    def history(self, record_id: UUID) -> list[HistoryEntry]:
        rows = self.session.execute(
            select(RecordHistoryModel)
            .where(RecordHistoryModel.record_id == record_id)
            .order_by(RecordHistoryModel.position)
        ).scalars()
        return [r.to_dto() for r in rows]

    def comments(self, record_id: UUID) -> list[Comment]:
        rows = self.session.execute(
            select(RecordCommentModel)
            .where(RecordCommentModel.record_id == record_id)
            .order_by(RecordCommentModel.created_at)
        ).scalars()
        return [r.to_dto() for r in rows]
