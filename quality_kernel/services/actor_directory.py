"""
ActorDirectory implementations -- resolve who may do what in a project.

Responsibility:
    Turn an (actor, project) pair into an ``AuthorizationContext``: global
    role, project-owner flag and the capability set from the actor's
    project membership.

Architecture position:
    Kernel > Services.  ``StaticActorDirectory`` is dict-backed (tests,
    embedding callers with their own identity provider);
    ``SqlActorDirectory`` reads the projects / project_memberships /
    actor_profiles tables.

Invariants enforced:
    - Capability flags are project-scoped: membership in project A grants
      nothing in project B.
    - Unknown capability strings are rejected when memberships are granted,
      so a typo cannot silently create a permission nobody checks.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from quality_kernel.domain.authorization import (
    ALL_CAPABILITIES,
    AuthorizationContext,
    GlobalRole,
)
from quality_kernel.exceptions import (
    ActorNotFoundError,
    ProjectNotFoundError,
    ValidationError,
)
from quality_kernel.logging_config import get_logger
from quality_kernel.models.project import ActorProfile, Project, ProjectMembership
from quality_kernel.services.base import BaseService

logger = get_logger("services.actor_directory")


def _checked_capabilities(capabilities: Iterable[str]) -> frozenset[str]:
    caps = frozenset(capabilities)
    unknown = caps - ALL_CAPABILITIES
    if unknown:
        raise ValidationError(
            f"Unknown capabilities: {sorted(unknown)}",
            {"capabilities": "unknown"},
        )
    return caps


class StaticActorDirectory:
    """ActorDirectory backed by plain dicts.

    Can be replaced with the database-backed directory or an
    identity-provider adapter.
    """

    def __init__(
        self,
        roles: dict[UUID, GlobalRole] | None = None,
        owners: dict[UUID, UUID] | None = None,
        memberships: dict[tuple[UUID, UUID], Iterable[str]] | None = None,
    ) -> None:
        self._roles: dict[UUID, GlobalRole] = dict(roles or {})
        self._owners: dict[UUID, UUID] = dict(owners or {})
        self._memberships: dict[tuple[UUID, UUID], frozenset[str]] = {
            key: _checked_capabilities(caps)
            for key, caps in (memberships or {}).items()
        }

    def add_project(self, project_id: UUID, owner_actor_id: UUID) -> None:
        self._owners[project_id] = owner_actor_id

    def set_role(self, actor_id: UUID, role: GlobalRole) -> None:
        self._roles[actor_id] = GlobalRole(role)

    def grant(self, actor_id: UUID, project_id: UUID, *capabilities: str) -> None:
        key = (project_id, actor_id)
        self._memberships[key] = (
            self._memberships.get(key, frozenset()) | _checked_capabilities(capabilities)
        )

    def capabilities_of(self, actor_id: UUID, project_id: UUID) -> AuthorizationContext:
        if project_id not in self._owners:
            raise ProjectNotFoundError(str(project_id))
        return AuthorizationContext(
            actor_id=actor_id,
            project_id=project_id,
            global_role=self._roles.get(actor_id, GlobalRole.USER),
            project_owner=self._owners[project_id] == actor_id,
            capabilities=self._memberships.get((project_id, actor_id), frozenset()),
        )


class SqlActorDirectory(BaseService):
    """ActorDirectory backed by the project / membership / profile tables.

    Actors without an ``ActorProfile`` row are unknown, unless they own the
    project (owners are always resolvable).  Actors without a membership get
    an empty capability set.
    """

    def capabilities_of(self, actor_id: UUID, project_id: UUID) -> AuthorizationContext:
        project = self.session.get(Project, project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))

        profile = self.session.execute(
            select(ActorProfile).where(ActorProfile.actor_id == actor_id)
        ).scalar_one_or_none()
        is_owner = project.owner_actor_id == actor_id
        if profile is None and not is_owner:
            raise ActorNotFoundError(str(actor_id))

        membership = self.session.execute(
            select(ProjectMembership).where(
                ProjectMembership.project_id == project_id,
                ProjectMembership.actor_id == actor_id,
            )
        ).scalar_one_or_none()

        return AuthorizationContext(
            actor_id=actor_id,
            project_id=project_id,
            global_role=GlobalRole(profile.global_role) if profile else GlobalRole.USER,
            project_owner=is_owner,
            capabilities=frozenset(membership.capabilities) if membership else frozenset(),
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def create_project(self, name: str, owner_actor_id: UUID) -> Project:
        project = Project(name=name, owner_actor_id=owner_actor_id)
        self.session.add(project)
        self.session.flush()
        logger.info(
            "project_created",
            extra={"project_id": str(project.id), "owner_actor_id": str(owner_actor_id)},
        )
        return project

    def register_actor(
        self,
        actor_id: UUID,
        display_name: str = "",
        global_role: GlobalRole = GlobalRole.USER,
    ) -> ActorProfile:
        profile = ActorProfile(
            actor_id=actor_id,
            display_name=display_name,
            global_role=GlobalRole(global_role).value,
        )
        self.session.add(profile)
        self.session.flush()
        return profile

    def grant(self, actor_id: UUID, project_id: UUID, *capabilities: str) -> ProjectMembership:
        """Add capabilities to the actor's membership, creating it if needed."""
        caps = _checked_capabilities(capabilities)
        if self.session.get(Project, project_id) is None:
            raise ProjectNotFoundError(str(project_id))

        membership = self.session.execute(
            select(ProjectMembership).where(
                ProjectMembership.project_id == project_id,
                ProjectMembership.actor_id == actor_id,
            )
        ).scalar_one_or_none()
        if membership is None:
            membership = ProjectMembership(
                project_id=project_id, actor_id=actor_id, capabilities=sorted(caps),
            )
            self.session.add(membership)
        else:
            membership.capabilities = sorted(set(membership.capabilities) | caps)
        self.session.flush()

        logger.info(
            "capabilities_granted",
            extra={
                "actor_id": str(actor_id),
                "project_id": str(project_id),
                "capabilities": sorted(caps),
            },
        )
        return membership

    def revoke(self, actor_id: UUID, project_id: UUID, *capabilities: str) -> None:
        membership = self.session.execute(
            select(ProjectMembership).where(
                ProjectMembership.project_id == project_id,
                ProjectMembership.actor_id == actor_id,
            )
        ).scalar_one_or_none()
        if membership is None:
            return
        membership.capabilities = sorted(set(membership.capabilities) - set(capabilities))
        self.session.flush()
