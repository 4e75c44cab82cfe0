"""
SequenceAllocator -- per-project, per-kind report numbers via atomic counters.

Responsibility:
    Issues human-readable report numbers (``FOR-001``, ``TASK-042``) for
    new records.  One counter row per (project, kind) holds the prefix and
    the last issued number.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by the WorkflowEngine when a record is created, and by the
    engine's ``configure_sequence`` for administrative prefix changes.

Invariants enforced:
    - Atomic increment: the counter is advanced with a single
      ``UPDATE ... SET current_number = current_number + 1`` statement.
      The row lock taken by that UPDATE is held until the caller's
      transaction ends, so concurrent allocations for the same key are
      serialized by the database.  A read-then-write in Python is never
      used.
    - current_number only increases; ``configure`` refuses to lower it.
    - Transactional: the increment is only visible after the caller
      commits.  Rollback returns the number.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
    - SequenceConflictError: the counter row vanished between the insert
      race and the retry (should not happen; counters are never deleted).
    - ValidationError: invalid prefix or an attempt to lower the counter.

Audit relevance:
    Every allocation is logged with project, kind and issued number.
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from quality_kernel.db.base import Base, UUIDString
from quality_kernel.domain.records import RecordKind
from quality_kernel.exceptions import SequenceConflictError, ValidationError
from quality_kernel.logging_config import get_logger
from quality_kernel.services.base import BaseService

logger = get_logger("services.sequence")

DEFAULT_PREFIXES: dict[RecordKind, str] = {
    RecordKind.OBSERVATION: "FOR",
    RecordKind.TRAINING: "SET",
    RecordKind.TASK: "TASK",
}

DEFAULT_PAD_WIDTH = 3


class SequenceCounter(Base):
    """
    Report number counter, one row per (project, kind).

    ``current_number`` is the last number issued (0 = none yet).
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint("project_id", "kind", name="uq_sequence_counters_key"),
        CheckConstraint("current_number >= 0", name="ck_sequence_counters_non_negative"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    current_number: Mapped[int] = mapped_column(nullable=False, default=0)


def format_report_number(prefix: str, number: int, width: int = DEFAULT_PAD_WIDTH) -> str:
    """``format_report_number("NO", 6) == "NO-006"``."""
    return f"{prefix}-{number:0{width}d}"


def normalize_prefix(prefix: str) -> str:
    cleaned = (prefix or "").strip().upper()
    if not cleaned:
        raise ValidationError("Prefix must not be empty", {"prefix": "required"})
    if "-" in cleaned or " " in cleaned:
        raise ValidationError(
            f"Prefix {prefix!r} may not contain spaces or dashes",
            {"prefix": "invalid"},
        )
    return cleaned


class SequenceAllocator(BaseService):
    """
    Service for issuing report numbers.

    Contract:
        ``allocate(project_id, kind)`` returns the next formatted number for
        the key.  Numbers are unique per key and form a contiguous run.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session_scope() as session:
            number = SequenceAllocator(session).allocate(project_id, RecordKind.TASK)
    """

    def __init__(
        self,
        session: Session,
        default_prefixes: dict[RecordKind, str] | None = None,
        pad_width: int = DEFAULT_PAD_WIDTH,
    ):
        super().__init__(session)
        self._default_prefixes = dict(default_prefixes or DEFAULT_PREFIXES)
        self._pad_width = pad_width

    def default_prefix(self, kind: RecordKind) -> str:
        return self._default_prefixes[RecordKind(kind)]

    def allocate(self, project_id: UUID, kind: RecordKind) -> str:
        """
        Issue the next report number for (project, kind).

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - The counter row is locked until the transaction completes.
            - The returned number is ``prefix-(previous current_number + 1)``.
        """
        kind = RecordKind(kind)

        if not self._increment(project_id, kind):
            self._create_counter(project_id, kind)

        counter = self._load(project_id, kind)
        if counter is None:
            raise SequenceConflictError(str(project_id), kind.value)

        number = format_report_number(counter.prefix, counter.current_number, self._pad_width)
        logger.info(
            "sequence_allocated",
            extra={
                "project_id": str(project_id),
                "kind": kind.value,
                "value": counter.current_number,
                "report_number": number,
            },
        )
        return number

    def current(self, project_id: UUID, kind: RecordKind) -> tuple[str, int]:
        """Return ``(prefix, current_number)`` without incrementing.

        An absent counter reports the default prefix and 0.
        """
        kind = RecordKind(kind)
        counter = self._load(project_id, kind)
        if counter is None:
            return self.default_prefix(kind), 0
        return counter.prefix, counter.current_number

    def configure(
        self,
        project_id: UUID,
        kind: RecordKind,
        prefix: str | None = None,
        current_number: int | None = None,
    ) -> tuple[str, int]:
        """
        Change the prefix and/or raise the counter of (project, kind).

        Raises:
            ValidationError: empty/invalid prefix, negative number, or an
                attempt to lower ``current_number`` (numbers are never reused).
        """
        kind = RecordKind(kind)
        if prefix is not None:
            prefix = normalize_prefix(prefix)
        if current_number is not None and current_number < 0:
            raise ValidationError(
                "Counter value must be non-negative",
                {"current_number": "must be >= 0"},
            )

        counter = self._load(project_id, kind, for_update=True)
        if counter is None:
            self._create_counter(project_id, kind, current_number=0)
            counter = self._load(project_id, kind, for_update=True)

        if current_number is not None and current_number < counter.current_number:
            raise ValidationError(
                f"Counter for {kind.value} is at {counter.current_number}; "
                f"lowering it to {current_number} would reuse report numbers",
                {"current_number": "cannot decrease"},
            )

        old = (counter.prefix, counter.current_number)
        if prefix is not None:
            counter.prefix = prefix
        if current_number is not None:
            counter.current_number = current_number
        self.session.flush()

        logger.info(
            "sequence_configured",
            extra={
                "project_id": str(project_id),
                "kind": kind.value,
                "old_prefix": old[0],
                "old_value": old[1],
                "prefix": counter.prefix,
                "value": counter.current_number,
            },
        )
        return counter.prefix, counter.current_number

    # ------------------------------------------------------------------

    def _increment(self, project_id: UUID, kind: RecordKind) -> bool:
        result = self.session.execute(
            update(SequenceCounter)
            .where(
                SequenceCounter.project_id == project_id,
                SequenceCounter.kind == kind.value,
            )
            .values(current_number=SequenceCounter.current_number + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _create_counter(
        self, project_id: UUID, kind: RecordKind, current_number: int = 1,
    ) -> None:
        # First use of this key.  Another transaction may insert the same row
        # concurrently; a savepoint keeps the rest of the caller's work intact.
        savepoint = self.session.begin_nested()
        try:
            self.session.add(SequenceCounter(
                project_id=project_id,
                kind=kind.value,
                prefix=self.default_prefix(kind),
                current_number=current_number,
            ))
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            logger.debug(
                "sequence_counter_race_retry",
                extra={"project_id": str(project_id), "kind": kind.value},
            )
            savepoint.rollback()
            if current_number > 0 and not self._increment(project_id, kind):
                raise SequenceConflictError(str(project_id), kind.value)

    def _load(
        self, project_id: UUID, kind: RecordKind, for_update: bool = False,
    ) -> SequenceCounter | None:
        stmt = (
            select(SequenceCounter)
            .where(
                SequenceCounter.project_id == project_id,
                SequenceCounter.kind == kind.value,
            )
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()
