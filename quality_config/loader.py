"""
Configuration loader (``quality_config.loader``).

Responsibility
--------------
Reads one YAML document and parses it into a frozen ``WorkflowConfig``.
Runtime callers go through ``quality_config.get_active_config()``.

Failure modes
-------------
* Missing file, malformed YAML, unknown keys, wrong types or out-of-range
  values all raise ``ConfigurationError`` naming the source and the
  offending key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from quality_config.schema import LOG_LEVELS, DatabaseConfig, WorkflowConfig
from quality_kernel.domain.records import RecordKind
from quality_kernel.exceptions import ConfigurationError, ValidationError
from quality_kernel.services.sequence_service import normalize_prefix

_TOP_LEVEL_KEYS = frozenset({"version", "database", "logging", "sequences", "records"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields ``{}``."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(str(path), "file not found") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _section(data: dict[str, Any], name: str, source: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(source, f"'{name}' must be a mapping")
    return value


def _positive_int(value: Any, key: str, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(source, f"'{key}' must be a positive integer")
    return value


def parse_prefixes(data: dict[str, Any], source: str) -> dict[RecordKind, str]:
    defaults = WorkflowConfig().default_prefixes
    prefixes = dict(defaults)
    for kind_name, prefix in data.items():
        try:
            kind = RecordKind(kind_name)
        except ValueError:
            raise ConfigurationError(source, f"unknown record kind {kind_name!r}") from None
        if not isinstance(prefix, str):
            raise ConfigurationError(source, f"prefix for {kind_name} must be text")
        try:
            prefixes[kind] = normalize_prefix(prefix)
        except ValidationError as exc:
            raise ConfigurationError(source, f"prefix for {kind_name}: {exc}") from exc
    return prefixes


def parse_config(data: dict[str, Any], source: str = "<memory>") -> WorkflowConfig:
    """Build a ``WorkflowConfig`` from a parsed document; missing keys take defaults."""
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigurationError(source, f"unknown keys: {sorted(unknown)}")

    defaults = WorkflowConfig()
    database = _section(data, "database", source)
    logging_section = _section(data, "logging", source)
    sequences = _section(data, "sequences", source)
    records = _section(data, "records", source)

    url = database.get("url", defaults.database.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError(source, "'database.url' must be a non-empty string")

    level = str(logging_section.get("level", defaults.log_level)).upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(source, f"'logging.level' must be one of {', '.join(LOG_LEVELS)}")

    return WorkflowConfig(
        version=_positive_int(data.get("version", defaults.version), "version", source),
        database=DatabaseConfig(url=url, echo=bool(database.get("echo", False))),
        log_level=level,
        default_prefixes=parse_prefixes(
            _section(sequences, "default_prefixes", source), source,
        ),
        number_padding=_positive_int(
            sequences.get("number_padding", defaults.number_padding),
            "sequences.number_padding", source,
        ),
        max_responsible_actors=_positive_int(
            records.get("max_responsible_actors", defaults.max_responsible_actors),
            "records.max_responsible_actors", source,
        ),
    )


def load_config(path: Path) -> WorkflowConfig:
    return parse_config(load_yaml_file(path), source=str(path))
