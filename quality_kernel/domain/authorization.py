"""
Authorization value types (``quality_kernel.domain.authorization``).

Responsibility
--------------
Replaces scattered per-module boolean permission columns with one
project-scoped ``AuthorizationContext``: a global role, a project-owner
flag and a set of capability strings named ``<kind>.<flag>``.  The
TransitionAuthorizer and PendingActionResolver consult only this value.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Capability vocabulary
---------------------
=============  ==================================
Kind           Flags
=============  ==================================
observation    ``access``, ``creator``, ``approver``
training       ``access``, ``planner``
task           ``access``, ``manager``
=============  ==================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID

from quality_kernel.domain.records import RecordKind


class GlobalRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES: frozenset[GlobalRole] = frozenset({
    GlobalRole.ADMIN,
    GlobalRole.SUPER_ADMIN,
})


class Party(str, Enum):
    """Relationship between an actor and a specific record."""

    ASSIGNED = "assigned"
    CREATOR = "creator"
    ORGANIZER = "organizer"


# Flag names (suffix of a capability string)
ACCESS = "access"
CREATOR = "creator"
APPROVER = "approver"
PLANNER = "planner"
MANAGER = "manager"

KIND_FLAGS: dict[RecordKind, frozenset[str]] = {
    RecordKind.OBSERVATION: frozenset({ACCESS, CREATOR, APPROVER}),
    RecordKind.TRAINING: frozenset({ACCESS, PLANNER}),
    RecordKind.TASK: frozenset({ACCESS, MANAGER}),
}


def capability(kind: RecordKind | str, flag: str) -> str:
    """Build the capability string for ``flag`` on ``kind``.

    Raises:
        ValueError: if ``flag`` is not defined for ``kind``.
    """
    kind = RecordKind(kind)
    if flag not in KIND_FLAGS[kind]:
        raise ValueError(f"Unknown capability flag {flag!r} for kind {kind.value!r}")
    return f"{kind.value}.{flag}"


ALL_CAPABILITIES: frozenset[str] = frozenset(
    capability(kind, flag)
    for kind, flags in KIND_FLAGS.items()
    for flag in flags
)


@dataclass(frozen=True)
class AuthorizationContext:
    """What one actor may do inside one project.

    Contract: frozen; ``capabilities`` holds strings from ALL_CAPABILITIES.
    Non-goals: does not know about records -- party relationships
    (assigned, creator, organizer) are resolved against the record by the
    authorizer.
    """

    actor_id: UUID
    project_id: UUID
    global_role: GlobalRole = GlobalRole.USER
    project_owner: bool = False
    capabilities: frozenset[str] = frozenset()

    def has(self, cap: str) -> bool:
        return cap in self.capabilities

    def is_admin_or_owner(self) -> bool:
        return self.global_role in ADMIN_ROLES or self.project_owner

    def has_access(self, kind: RecordKind | str) -> bool:
        """True if the actor may see records of ``kind`` at all."""
        return self.is_admin_or_owner() or self.has(capability(kind, ACCESS))


@dataclass(frozen=True)
class AuthorizationDecision:
    """Allow, or Deny with a human-readable reason."""

    allowed: bool
    reason: str = ""

    @classmethod
    def allow(cls, reason: str = "") -> AuthorizationDecision:
        return cls(True, reason)

    @classmethod
    def deny(cls, reason: str) -> AuthorizationDecision:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


class ActorDirectory(Protocol):
    """Resolves an actor's project-scoped authorization context."""

    def capabilities_of(self, actor_id: UUID, project_id: UUID) -> AuthorizationContext:
        """Return the context, or raise ActorNotFoundError / ProjectNotFoundError."""
        ...
