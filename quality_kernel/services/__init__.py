"""Kernel services: sequence allocation, record persistence, actor directory."""

from quality_kernel.services.actor_directory import SqlActorDirectory, StaticActorDirectory
from quality_kernel.services.base import BaseService
from quality_kernel.services.record_store import SqlRecordStore
from quality_kernel.services.sequence_service import (
    SequenceAllocator,
    SequenceCounter,
    format_report_number,
)

__all__ = [
    "BaseService",
    "SequenceAllocator",
    "SequenceCounter",
    "format_report_number",
    "SqlRecordStore",
    "SqlActorDirectory",
    "StaticActorDirectory",
]
