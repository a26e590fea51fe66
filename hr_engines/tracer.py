"""
hr_engines.tracer -- Engine invocation tracer emitting HR_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging: engine_name,
    engine_version, input_fingerprint (SHA-256 prefix of selected keyword
    inputs), and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; no other side effects.

Usage:
    @traced_engine("routing", "1.0", fingerprint_fields=("requester_role",))
    def next_state(workflow, transition, *, requester_role):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from hr_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable string form of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float, str)):
        return str(value)
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """Deterministic 16-hex-char fingerprint of selected keyword inputs.

    Missing fields are recorded as "null".
    """
    parts = [f"{f}={_canonicalize(kwargs.get(f))}" for f in fingerprint_fields]
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits HR_ENGINE_TRACE for pure engine invocations."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                fp = compute_input_fingerprint(fingerprint_fields, kwargs)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.debug(
                "HR_ENGINE_TRACE",
                extra={
                    "trace_type": "HR_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__name__,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                },
            )
            return result

        wrapper._engine_name = engine_name  # type: ignore[attr-defined]
        wrapper._engine_version = engine_version  # type: ignore[attr-defined]
        return wrapper

    return decorator
