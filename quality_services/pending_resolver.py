"""
quality_services.pending_resolver -- per-actor pending work.

Responsibility:
    Apply the pending predicate table (``quality_engines.pending``) to the
    current store state to list the records waiting on one actor in one
    project, and to derive dashboard badge counts from the same list.

Architecture position:
    Services layer.  Read-only: queries the RecordStore and ActorDirectory,
    never writes.

Invariants enforced:
    - Badge counts are the length of the pending list per kind; there is
      no second filtering path that could drift from it.
    - Kinds the actor cannot access are skipped without querying.
"""

from __future__ import annotations

from collections.abc import Iterator
from uuid import UUID

from quality_engines.pending import is_pending, pending_statuses
from quality_kernel.domain.authorization import ActorDirectory
from quality_kernel.domain.records import Record, RecordKind, RecordStore
from quality_kernel.logging_config import get_logger

logger = get_logger("services.pending_resolver")


class PendingActionResolver:
    """Derives the records that require an actor's attention right now."""

    def __init__(
        self,
        store: RecordStore,
        directory: ActorDirectory,
        kinds: tuple[RecordKind, ...] = tuple(RecordKind),
    ) -> None:
        self._store = store
        self._directory = directory
        self._kinds = kinds

    def list_pending_for(self, actor_id: UUID, project_id: UUID) -> Iterator[Record]:
        """Yield pending records, kind by kind.

        A generator: it reads the store lazily as it is consumed and cannot
        be restarted.  Call again for a fresh view.
        """
        context = self._directory.capabilities_of(actor_id, project_id)
        for kind in self._kinds:
            if not context.has_access(kind):
                continue
            candidates = self._store.query(project_id, kind, pending_statuses(kind))
            for record in candidates:
                if is_pending(context, record):
                    yield record

    def pending_counts(self, actor_id: UUID, project_id: UUID) -> dict[RecordKind, int]:
        counts = {kind: 0 for kind in self._kinds}
        for record in self.list_pending_for(actor_id, project_id):
            counts[record.kind] += 1
        logger.debug(
            "pending_counts_computed",
            extra={
                "actor_id": str(actor_id),
                "project_id": str(project_id),
                "counts": {k.value: v for k, v in counts.items()},
            },
        )
        return counts
