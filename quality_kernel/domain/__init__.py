"""
Pure domain layer.

This module contains pure value objects and protocols with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable.  Time enters only through ``Clock``.
"""

from quality_kernel.domain.authorization import (
    ActorDirectory,
    AuthorizationContext,
    AuthorizationDecision,
    GlobalRole,
    Party,
    capability,
)
from quality_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from quality_kernel.domain.records import (
    STATUS_ENUMS,
    ClosureOutcome,
    Comment,
    HistoryEntry,
    ObservationStatus,
    Record,
    RecordKind,
    RecordStore,
    TaskStatus,
    TrainingStatus,
    WorkLogEntry,
)
from quality_kernel.domain.workflow import Transition, Workflow, validate_workflow

__all__ = [
    # Records
    "RecordKind",
    "ObservationStatus",
    "TrainingStatus",
    "TaskStatus",
    "STATUS_ENUMS",
    "ClosureOutcome",
    "Record",
    "WorkLogEntry",
    "HistoryEntry",
    "Comment",
    "RecordStore",
    # Authorization
    "GlobalRole",
    "Party",
    "capability",
    "AuthorizationContext",
    "AuthorizationDecision",
    "ActorDirectory",
    # Workflow
    "Transition",
    "Workflow",
    "validate_workflow",
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
]
