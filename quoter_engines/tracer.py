"""
quoter_engines.tracer -- Engine invocation tracer emitting QUOTER_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging.  The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected arguments) and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Does NOT introduce I/O into engines; emits a log record only.

Invariants enforced:
    - Fingerprints are deterministic: arguments are reduced to canonical
      JSON (objects via their ``to_dict()``), keys sorted, then hashed.
    - The decorator never mutates arguments and never swallows errors;
      a failed invocation is logged at WARNING and re-raised.

Usage:
    from quoter_engines.tracer import traced_engine

    @traced_engine("panel_letters", "1", fingerprint_fields=("item", "rate_card"))
    def calculate(item, rate_card):
        ...
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any

from quoter_kernel.utils.hashing import hash_payload

_logger = logging.getLogger("quoter.engines.tracer")


def _to_plain(value: Any) -> Any:
    """Reduce a value to JSON-compatible data for fingerprinting."""
    if hasattr(value, "to_dict"):
        return _to_plain(value.to_dict())
    if isinstance(value, dict):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """Compute a deterministic SHA-256 fingerprint of selected arguments.

    Missing fields are recorded as null.  Returns a 16-character hex prefix.
    """
    payload = {name: _to_plain(arguments.get(name)) for name in fingerprint_fields}
    return hash_payload(payload)[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits QUOTER_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "panel_letters").
        engine_version: Engine version (e.g., "1").
        fingerprint_fields: Parameter names (positional or keyword) to
            include in the input fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, dict(bound.arguments))

            t0 = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                _logger.warning(
                    "QUOTER_ENGINE_TRACE",
                    extra={
                        "trace_type": "QUOTER_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fp,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                        "function": func.__qualname__,
                        "outcome": "error",
                        "error_code": getattr(exc, "code", type(exc).__name__),
                    },
                )
                raise
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "QUOTER_ENGINE_TRACE",
                extra={
                    "trace_type": "QUOTER_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                    "outcome": "ok",
                },
            )
            return result

        return wrapper

    return decorator
