"""
quality_engines.authorizer -- Transition authorization decisions.

Responsibility:
    Decide whether an actor may execute an action on a record (or create a
    record of a kind).  Returns an ``AuthorizationDecision``; the workflow
    engine translates a denial into ``AuthorizationError``.

Architecture position:
    Engines -- pure decision layer, zero I/O.
    May only import quality_kernel/domain/ types.

Rule order:
    1. Global admin / super_admin or project owner -> Allow (full bypass).
    2. Actor lacks ``<kind>.access`` -> Deny.
    3. ``TRANSITION_REQUIREMENTS[(kind, action)]``: holding ANY listed
       capability, or standing in ANY listed party relationship to the
       record (assigned, creator, organizer), allows the action.  A row
       with neither is reserved for admins and owners.  A missing row
       denies.

Invariants enforced:
    - Purity: the decision depends only on (context, record, action).
    - Payload is never consulted, so an unauthorized actor is denied
      regardless of how valid their payload is.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from quality_engines.tracer import traced_engine
from quality_kernel.domain.authorization import (
    ACCESS,
    APPROVER,
    CREATOR,
    MANAGER,
    PLANNER,
    AuthorizationContext,
    AuthorizationDecision,
    Party,
    capability,
)
from quality_kernel.domain.records import Record, RecordKind

CREATE_ACTION = "create"


@dataclass(frozen=True)
class Requirement:
    """What grants a non-admin actor one action on one kind."""

    capabilities: frozenset[str] = frozenset()
    parties: frozenset[Party] = frozenset()

    @property
    def admin_only(self) -> bool:
        return not self.capabilities and not self.parties

    def describe(self) -> str:
        if self.admin_only:
            return "admin or project owner"
        options = sorted(self.capabilities) + sorted(p.value for p in self.parties)
        return " or ".join(options)


def _req(*grants: str | Party) -> Requirement:
    return Requirement(
        capabilities=frozenset(g for g in grants if not isinstance(g, Party)),
        parties=frozenset(g for g in grants if isinstance(g, Party)),
    )


_OBS = RecordKind.OBSERVATION
_TRN = RecordKind.TRAINING
_TSK = RecordKind.TASK

# (kind, action) -> Requirement.  Every action of every registered workflow
# must have a row; the module registry checks this at import time.
TRANSITION_REQUIREMENTS: dict[tuple[RecordKind, str], Requirement] = {
    # Observation
    (_OBS, CREATE_ACTION): _req(capability(_OBS, CREATOR)),
    (_OBS, "approve"): _req(capability(_OBS, APPROVER)),
    (_OBS, "enter_data"): _req(Party.ASSIGNED),
    (_OBS, "submit_closing"): _req(Party.ASSIGNED),
    (_OBS, "approve_closing"): _req(Party.CREATOR, capability(_OBS, APPROVER)),
    (_OBS, "reject_closing"): _req(Party.CREATOR, capability(_OBS, APPROVER)),
    # Training
    (_TRN, CREATE_ACTION): _req(capability(_TRN, PLANNER)),
    (_TRN, "execute"): _req(Party.ORGANIZER, capability(_TRN, PLANNER)),
    (_TRN, "approve"): _req(capability(_TRN, PLANNER)),
    (_TRN, "reject"): _req(capability(_TRN, PLANNER)),
    (_TRN, "cancel"): _req(),
    # Task
    (_TSK, CREATE_ACTION): _req(capability(_TSK, ACCESS)),
    (_TSK, "start"): _req(Party.ASSIGNED),
    (_TSK, "submit_work"): _req(Party.ASSIGNED),
    (_TSK, "approve"): _req(Party.CREATOR, capability(_TSK, MANAGER)),
    (_TSK, "reject"): _req(Party.CREATOR, capability(_TSK, MANAGER)),
}


def parties_of(context: AuthorizationContext, record: Record) -> frozenset[Party]:
    """Relationships the context's actor has with ``record``."""
    actor = context.actor_id
    parties: set[Party] = set()
    if record.is_assigned(actor):
        parties.add(Party.ASSIGNED)
    if record.creator_actor_id == actor:
        parties.add(Party.CREATOR)
    if record.organizer_actor_id is not None and record.organizer_actor_id == actor:
        parties.add(Party.ORGANIZER)
    return frozenset(parties)


class TransitionAuthorizer:
    """Evaluates the rule order above against a requirement table.

    The table defaults to TRANSITION_REQUIREMENTS; pass another mapping to
    extend or tighten the rules without touching this class.
    """

    def __init__(
        self,
        requirements: Mapping[tuple[RecordKind, str], Requirement] | None = None,
    ) -> None:
        self._requirements = dict(
            TRANSITION_REQUIREMENTS if requirements is None else requirements
        )

    def requirement_for(self, kind: RecordKind, action: str) -> Requirement | None:
        return self._requirements.get((RecordKind(kind), action))

    @traced_engine("transition_authorizer", "1.0")
    def authorize(
        self,
        context: AuthorizationContext,
        record: Record,
        action: str,
    ) -> AuthorizationDecision:
        return self._decide(context, record.kind, action, parties_of(context, record))

    @traced_engine("transition_authorizer", "1.0")
    def authorize_create(
        self,
        context: AuthorizationContext,
        kind: RecordKind,
    ) -> AuthorizationDecision:
        return self._decide(context, RecordKind(kind), CREATE_ACTION, frozenset())

    def _decide(
        self,
        context: AuthorizationContext,
        kind: RecordKind,
        action: str,
        parties: frozenset[Party],
    ) -> AuthorizationDecision:
        if context.is_admin_or_owner():
            return AuthorizationDecision.allow("admin or project owner")

        if not context.has_access(kind):
            return AuthorizationDecision.deny(
                f"actor lacks {capability(kind, ACCESS)}"
            )

        requirement = self.requirement_for(kind, action)
        if requirement is None:
            return AuthorizationDecision.deny(
                f"no rule grants '{action}' on {kind.value} to non-admin actors"
            )

        held = sorted(c for c in requirement.capabilities if context.has(c))
        if held:
            return AuthorizationDecision.allow(f"holds {held[0]}")

        matched = sorted(p.value for p in requirement.parties & parties)
        if matched:
            return AuthorizationDecision.allow(f"is {matched[0]}")

        return AuthorizationDecision.deny(
            f"'{action}' on {kind.value} requires {requirement.describe()}"
        )
