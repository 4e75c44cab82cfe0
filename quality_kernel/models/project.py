"""
Module: quality_kernel.models.project
Responsibility: ORM persistence for projects, per-project memberships with
    capability flags, and global actor profiles.  These are the data source
    of the SQL-backed ActorDirectory.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One membership row per (project, actor) (uq_project_memberships_actor).
    - global_role is one of user / admin / super_admin.
    - Capability flags are project-scoped: the same actor holds an
      independent flag set in every project.

Failure modes:
    - IntegrityError on duplicate membership or duplicate actor profile.
"""

from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quality_kernel.db.base import Base, UUIDString


class Project(Base):
    """A construction site / contract that owns records and counters."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # The actor who created / administers the project (owner bypass)
    owner_actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def __repr__(self) -> str:
        return f"<Project {self.name}>"


class ProjectMembership(Base):
    """Capability flags an actor holds inside one project."""

    __tablename__ = "project_memberships"

    __table_args__ = (
        UniqueConstraint("project_id", "actor_id", name="uq_project_memberships_actor"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # Capability strings, e.g. ["observation.access", "observation.approver"]
    capabilities: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<ProjectMembership {self.actor_id} in {self.project_id}>"


class ActorProfile(Base):
    """Global identity attributes resolved from the identity provider."""

    __tablename__ = "actor_profiles"

    __table_args__ = (
        CheckConstraint(
            "global_role IN ('user', 'admin', 'super_admin')",
            name="ck_actor_profiles_role",
        ),
    )

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    global_role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
