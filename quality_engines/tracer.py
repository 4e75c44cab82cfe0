"""
quality_engines.tracer -- invocation tracer for the pure decision engines.

Responsibility:
    ``@traced_engine`` wraps an engine function and emits one DEBUG
    ``ENGINE_TRACE`` record per call: engine name and version, a short
    fingerprint of the selected keyword inputs, and duration.

Architecture position:
    Engines -- infrastructure support.  Emits a log record only; engines
    stay free of I/O.  Uses a plain ``logging`` logger under the
    ``quality_kernel`` namespace instead of importing the kernel's logging
    helpers.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

_logger = logging.getLogger("quality_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, dict):
        return "{" + ",".join(
            f"{k}:{_canonicalize(v)}" for k, v in sorted(value.items())
        ) + "}"
    if isinstance(value, (list, tuple, frozenset, set)):
        items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
        return "[" + ",".join(_canonicalize(v) for v in items) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16 hex chars of SHA-256 over ``field=value`` pairs; missing fields are "null"."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits ENGINE_TRACE for each engine invocation."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            t0 = time.monotonic()
            result = func(*args, **kwargs)
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "ENGINE_TRACE",
                    extra={
                        "trace_type": "ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": compute_input_fingerprint(
                            fingerprint_fields, kwargs,
                        ) if fingerprint_fields else "",
                        "duration_ms": round((time.monotonic() - t0) * 1000, 3),
                        "function": func.__qualname__,
                    },
                )
            return result

        return wrapper

    return decorator
