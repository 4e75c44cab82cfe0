"""
quality_config -- single public entrypoint for workflow configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  It returns a frozen ``WorkflowConfig`` parsed from
    ``defaults.yaml`` or from the file passed in.

Architecture position:
    Sits above ``quality_kernel``; the kernel never imports from here.
    ``quality_services.build_workflow_engine`` consumes the result.

Audit relevance:
    Every successful load emits a ``QUALITY_CONFIG_TRACE`` log entry with
    the source path and the effective settings.
"""

from __future__ import annotations

from pathlib import Path

from quality_config.loader import load_config, parse_config
from quality_config.schema import DatabaseConfig, WorkflowConfig
from quality_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> WorkflowConfig:
    """Load and validate the active configuration.

    Raises:
        ConfigurationError: the file is missing or does not validate.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config(source)
    _logger.info(
        "QUALITY_CONFIG_TRACE",
        extra={
            "trace_type": "QUALITY_CONFIG_TRACE",
            "source": str(source),
            "config_version": config.version,
            "log_level": config.log_level,
            "number_padding": config.number_padding,
            "max_responsible_actors": config.max_responsible_actors,
            "default_prefixes": {k.value: v for k, v in config.default_prefixes.items()},
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "WorkflowConfig",
    "get_active_config",
    "load_config",
    "parse_config",
]
