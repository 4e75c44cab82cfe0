"""
Workflow configuration schema.

The typed, frozen form of a configuration document.  The loader parses
YAML into these types; services receive a ``WorkflowConfig`` and never see
raw dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from quality_kernel.domain.records import RecordKind
from quality_kernel.services.sequence_service import DEFAULT_PAD_WIDTH, DEFAULT_PREFIXES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Where records live."""

    url: str = "sqlite:///quality_kernel.db"
    echo: bool = False


@dataclass(frozen=True)
class WorkflowConfig:
    """Complete runtime configuration."""

    version: int = 1
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = "INFO"
    default_prefixes: dict[RecordKind, str] = field(
        default_factory=lambda: dict(DEFAULT_PREFIXES),
    )
    number_padding: int = DEFAULT_PAD_WIDTH
    max_responsible_actors: int = 2

    @property
    def database_url(self) -> str:
        return self.database.url
