"""
quality_services.workflow_engine -- Record lifecycle orchestration.

Responsibility:
    The single entry point callers use to create records, move them along
    their workflow, comment on them and read pending work.  Thin
    coordinator: graph lookup is delegated to the kind registry,
    authorization to TransitionAuthorizer, closure classification to the
    deadline engine, numbering to SequenceAllocator and persistence to the
    RecordStore.

Architecture position:
    Services layer.  May import from quality_engines/ (pure engines),
    quality_modules/ (kind definitions) and quality_kernel/ (domain,
    services).

Check order for ``transition``:
    1. load record                       -> RecordNotFoundError
    2. caller's expected_version         -> ConflictError
    3. (status, action) edge exists      -> InvalidTransitionError
    4. actor authorized                  -> AuthorizationError
    5. payload valid                     -> ValidationError
    6. record update + work log + history, flushed together
       (lost version race                -> ConflictError)

Invariants enforced:
    - No transition partially applies: every write happens after every
      check, inside the caller's transaction.
    - Closure outcome is computed once, when a closing edge fires, and
      stored on the record.
    - Every create, and every transition on an existing record, emits
      exactly one ``workflow_transition`` trace with its outcome.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from quality_engines.authorizer import CREATE_ACTION, TransitionAuthorizer
from quality_engines.deadline import classify_closure
from quality_kernel.domain.authorization import ACCESS, ActorDirectory, capability
from quality_kernel.domain.clock import Clock, SystemClock
from quality_kernel.domain.records import (
    Comment,
    HistoryEntry,
    Record,
    RecordKind,
    RecordStore,
    WorkLogEntry,
)
from quality_kernel.domain.workflow import Transition
from quality_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    QualityKernelError,
    ValidationError,
)
from quality_kernel.logging_config import LogContext, get_logger
from quality_kernel.services.actor_directory import SqlActorDirectory
from quality_kernel.services.record_store import SqlRecordStore
from quality_kernel.services.sequence_service import SequenceAllocator
from quality_modules._payload import PayloadContext, PayloadReader, require_reason
from quality_modules.registry import DEFAULT_REGISTRY, KindRegistry
from quality_services.pending_resolver import PendingActionResolver

logger = get_logger("services.workflow_engine")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
CREATE_HISTORY_ACTION = "create"


def _emit_workflow_trace(
    kind: str,
    action: str,
    record_id: UUID | None,
    from_state: str | None,
    outcome: str,
    reason: str,
    duration_ms: float,
    to_state: str | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record for traceability."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": datetime.now(UTC).isoformat(),
        "workflow": kind,
        "action": action,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if record_id is not None:
        record["entity_id"] = str(record_id)
    if to_state is not None:
        record["to_state"] = to_state
    record.update(LogContext.get_all())
    logger.info("workflow_transition", extra=record)
    if outcome_sink is not None:
        outcome_sink(dict(record, message="workflow_transition"))


def _coerce_kind(kind: RecordKind | str) -> RecordKind:
    try:
        return RecordKind(kind)
    except ValueError:
        raise ValidationError(f"Unknown record kind: {kind!r}", {"kind": "unknown"})


class WorkflowEngine:
    """Creates records and executes their workflow transitions.

    Stateless between calls; all durable state lives behind the store and
    the sequence allocator.  Never commits -- wrap calls in
    ``session_scope()`` (or the caller's own transaction).
    """

    def __init__(
        self,
        store: RecordStore,
        directory: ActorDirectory,
        sequences: SequenceAllocator,
        registry: KindRegistry | None = None,
        authorizer: TransitionAuthorizer | None = None,
        clock: Clock | None = None,
        max_assignees: int = 2,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> None:
        self._store = store
        self._directory = directory
        self._sequences = sequences
        self._registry = registry or DEFAULT_REGISTRY
        self._authorizer = authorizer or TransitionAuthorizer()
        self._clock = clock or SystemClock()
        self._max_assignees = max_assignees
        self._outcome_sink = outcome_sink
        self._pending = PendingActionResolver(store, directory, self._registry.kinds())

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_record(
        self,
        project_id: UUID,
        kind: RecordKind | str,
        actor_id: UUID,
        payload: Mapping[str, Any] | None = None,
    ) -> Record:
        """Validate, number and persist a new record in its initial state."""
        t0 = time.monotonic()
        kind = _coerce_kind(kind)
        workflow = self._registry.workflow(kind)
        with LogContext.bind(actor_id=actor_id, project_id=project_id):
            try:
                context = self._directory.capabilities_of(actor_id, project_id)
                decision = self._authorizer.authorize_create(context, kind)
                if not decision:
                    raise AuthorizationError(str(actor_id), CREATE_ACTION, decision.reason)

                now = self._clock.now()
                spec = self._registry.get(kind).validate_create(
                    payload or {}, self._payload_context(actor_id, now),
                )
                report_number = self._sequences.allocate(project_id, kind)

                created = self._store.create(Record(
                    id=uuid4(),
                    project_id=project_id,
                    kind=kind,
                    status=workflow.initial_state,
                    creator_actor_id=actor_id,
                    report_number=report_number,
                    created_at=now,
                    assigned_actor_ids=spec.assigned_actor_ids,
                    organizer_actor_id=spec.organizer_actor_id,
                    planned_close_date=spec.planned_close_date,
                    details=spec.details,
                ))
                self._store.append_history(
                    created.id, actor_id, CREATE_HISTORY_ACTION,
                    None, created.status, None, now,
                )
            except QualityKernelError as exc:
                self._trace(kind, CREATE_ACTION, None, None, exc.code.lower(), str(exc), t0)
                raise

            logger.info(
                "record_created",
                extra={
                    "kind": kind.value,
                    "report_number": created.report_number,
                    "status": created.status,
                },
            )
            self._trace(
                kind, CREATE_ACTION, created.id, None, OUTCOME_SUCCESS,
                decision.reason, t0, to_state=created.status,
            )
            return created

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self,
        record_id: UUID,
        action: str,
        actor_id: UUID,
        payload: Mapping[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> Record:
        """Execute ``action`` on the record as ``actor_id``.

        ``expected_version`` is the version the caller last saw; pass it to
        turn "someone else changed this first" into a ConflictError instead
        of silently acting on the newer state.

        Without ``expected_version`` the error a losing concurrent caller
        sees depends on the backend.  SQLite runs writers one after the
        other (``BEGIN IMMEDIATE``), so the loser reads the winner's state
        and usually gets InvalidTransitionError.  PostgreSQL reports the
        lost version race as ConflictError.  Pass ``expected_version`` to
        get ConflictError on every backend.
        """
        t0 = time.monotonic()
        record = self._store.get(record_id)

        with LogContext.bind(
            actor_id=actor_id, project_id=record.project_id, record_id=record_id,
        ):
            try:
                updated, edge, reason = self._apply(
                    record, action, actor_id, payload or {}, expected_version,
                )
            except QualityKernelError as exc:
                self._trace(
                    record.kind, action, record_id, record.status,
                    exc.code.lower(), str(exc), t0,
                )
                raise

            self._trace(
                record.kind, action, record_id, record.status, OUTCOME_SUCCESS,
                reason, t0, to_state=edge.to_state,
            )
            return updated

    def _apply(
        self,
        record: Record,
        action: str,
        actor_id: UUID,
        payload: Mapping[str, Any],
        expected_version: int | None,
    ) -> tuple[Record, Transition, str]:
        if expected_version is not None and record.version != expected_version:
            raise ConflictError(
                "Record", str(record.id),
                expected_version=expected_version, actual_version=record.version,
            )

        definition = self._registry.get(record.kind)
        edges = definition.workflow.edges_from(record.status, action)
        if not edges:
            raise InvalidTransitionError(record.kind.value, record.status, action)

        context = self._directory.capabilities_of(actor_id, record.project_id)
        decision = self._authorizer.authorize(context, record, action)
        if not decision:
            logger.warning(
                "transition_denied",
                extra={"action": action, "status": record.status, "reason": decision.reason},
            )
            raise AuthorizationError(
                str(actor_id), action, decision.reason, record_id=str(record.id),
            )

        now = self._clock.now()
        if edges[0].requires_reason:
            require_reason(payload)
        effect = definition.action_handlers[action](
            record, payload, self._payload_context(actor_id, now),
        )

        patch: dict[str, Any] = dict(effect.patch)
        if effect.details:
            patch["details"] = {**record.details, **effect.details}

        edge = edges[0]
        if edge.closes:
            planned = patch.get("planned_close_date", record.planned_close_date)
            outcome = classify_closure(planned_close_date=planned, closed_at=now)
            if len(edges) > 1:
                edge = next(e for e in edges if e.closure_outcome == outcome)
            patch["closed_at"] = now
            patch["closure_outcome"] = outcome
        if edge.clears_rejection:
            patch["rejection_reason"] = None
        patch["status"] = edge.to_state

        updated = self._store.update(record.id, patch, record.version)
        if effect.work_log is not None:
            self._store.append_work_log(record.id, actor_id, effect.work_log, now)
        self._store.append_history(
            record.id, actor_id, action, record.status, edge.to_state, effect.notes, now,
        )

        logger.info(
            "record_transitioned",
            extra={
                "action": action,
                "from_state": record.status,
                "to_state": edge.to_state,
                "version": updated.version,
                "closure_outcome": updated.closure_outcome,
            },
        )
        return updated, edge, decision.reason

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_record(self, record_id: UUID) -> Record:
        return self._store.get(record_id)

    def available_actions(self, record_id: UUID, actor_id: UUID) -> tuple[str, ...]:
        """Actions the actor could take now (graph edge exists and authorized).

        Payload validity is not checked.
        """
        record = self._store.get(record_id)
        workflow = self._registry.workflow(record.kind)
        context = self._directory.capabilities_of(actor_id, record.project_id)
        return tuple(
            action for action in workflow.actions_from(record.status)
            if self._authorizer.authorize(context, record, action)
        )

    def list_pending_for(self, actor_id: UUID, project_id: UUID) -> Iterator[Record]:
        return self._pending.list_pending_for(actor_id, project_id)

    def pending_counts(self, actor_id: UUID, project_id: UUID) -> dict[RecordKind, int]:
        return self._pending.pending_counts(actor_id, project_id)

    def get_history(self, record_id: UUID) -> list[HistoryEntry]:
        self._store.get(record_id)
        return self._store.history(record_id)

    def get_work_logs(self, record_id: UUID) -> list[WorkLogEntry]:
        self._store.get(record_id)
        return self._store.work_logs(record_id)

    def get_comments(self, record_id: UUID) -> list[Comment]:
        self._store.get(record_id)
        return self._store.comments(record_id)

    # ------------------------------------------------------------------
    # Comments and administration
    # ------------------------------------------------------------------

    def add_comment(self, record_id: UUID, actor_id: UUID, text: str) -> Comment:
        """Attach a comment; any actor with access to the record's kind may comment."""
        record = self._store.get(record_id)
        context = self._directory.capabilities_of(actor_id, record.project_id)
        if not context.has_access(record.kind):
            raise AuthorizationError(
                str(actor_id), "comment",
                f"actor lacks {capability(record.kind, ACCESS)}",
                record_id=str(record_id),
            )

        reader = PayloadReader({"text": text})
        body = reader.text("text")
        reader.raise_if_errors("Comment text is required")

        comment = self._store.add_comment(record_id, actor_id, body, self._clock.now())
        with LogContext.bind(actor_id=actor_id, project_id=record.project_id, record_id=record_id):
            logger.info("comment_added", extra={"comment_id": str(comment.id)})
        return comment

    def configure_sequence(
        self,
        project_id: UUID,
        kind: RecordKind | str,
        actor_id: UUID,
        prefix: str | None = None,
        current_number: int | None = None,
    ) -> tuple[str, int]:
        """Change a counter's prefix or raise its value (admin or owner only)."""
        kind = _coerce_kind(kind)
        context = self._directory.capabilities_of(actor_id, project_id)
        if not context.is_admin_or_owner():
            raise AuthorizationError(
                str(actor_id), "configure_sequence", "admin or project owner only",
            )
        return self._sequences.configure(project_id, kind, prefix, current_number)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _payload_context(self, actor_id: UUID, now: datetime) -> PayloadContext:
        return PayloadContext(actor_id=actor_id, now=now, max_assignees=self._max_assignees)

    def _trace(
        self,
        kind: RecordKind,
        action: str,
        record_id: UUID | None,
        from_state: str | None,
        outcome: str,
        reason: str,
        t0: float,
        to_state: str | None = None,
    ) -> None:
        _emit_workflow_trace(
            kind=kind.value,
            action=action,
            record_id=record_id,
            from_state=from_state,
            outcome=outcome,
            reason=reason,
            duration_ms=(time.monotonic() - t0) * 1000,
            to_state=to_state,
            outcome_sink=self._outcome_sink,
        )


def build_workflow_engine(
    session: Session,
    directory: ActorDirectory | None = None,
    clock: Clock | None = None,
    config: Any | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> WorkflowEngine:
    """Wire a WorkflowEngine onto one SQLAlchemy session.

    ``config`` is a ``quality_config.WorkflowConfig``; when omitted the
    active configuration is loaded.
    """
    if config is None:
        from quality_config import get_active_config

        config = get_active_config()

    return WorkflowEngine(
        store=SqlRecordStore(session),
        directory=directory or SqlActorDirectory(session),
        sequences=SequenceAllocator(
            session,
            default_prefixes=config.default_prefixes,
            pad_width=config.number_padding,
        ),
        clock=clock,
        max_assignees=config.max_responsible_actors,
        outcome_sink=outcome_sink,
    )
