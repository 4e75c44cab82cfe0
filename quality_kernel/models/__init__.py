"""SQLAlchemy ORM models for the quality kernel."""

from quality_kernel.models.project import ActorProfile, Project, ProjectMembership
from quality_kernel.models.record import (
    RecordCommentModel,
    RecordHistoryModel,
    RecordModel,
    RecordWorkLogModel,
)

__all__ = [
    "Project",
    "ProjectMembership",
    "ActorProfile",
    "RecordModel",
    "RecordWorkLogModel",
    "RecordHistoryModel",
    "RecordCommentModel",
]
