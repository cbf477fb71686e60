"""
payables_engines.tracer -- PAYABLES_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and, after each call,
    emits one debug record naming the engine, its version, a fingerprint of
    selected inputs, the call duration and the size of the result.  Replaying
    the same inputs yields the same fingerprint, which ties a rendered
    ledger or allocation back to the inputs that produced it.

Architecture position:
    Engines -- support code for the calculation layer.  Emits log records
    only; never alters arguments or results.

Invariants enforced:
    - Fingerprint fields are resolved against the wrapped function's
      signature, so positional and keyword calls fingerprint identically
      and defaults are applied.
    - Canonical forms: mappings sorted by key, sequences in order,
      dataclass records by their fields, enums by value, dates ISO-8601.
    - The fingerprint is the first 16 hex chars of a SHA-256 digest.

Failure modes:
    - A fingerprint field that is not a parameter of the wrapped function
      raises ``TypeError`` at decoration time.

Usage:
    from payables_engines.tracer import traced_engine

    @traced_engine("distribution", "1.0", fingerprint_fields=("amount",))
    def distribute(self, amount, lines, credit_notes=()):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payables_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable text form of ``value`` for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (bool, int, Decimal, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        items = ((f.name, getattr(value, f.name)) for f in dataclasses.fields(value))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """
    SHA-256 fingerprint (16 hex chars) of the named ``arguments``.

    Fields absent from ``arguments`` are recorded as ``null``.
    """
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _result_size(result: Any) -> int | None:
    if isinstance(result, (list, tuple)):
        return len(result)
    entries = getattr(result, "entries", None)
    if isinstance(entries, tuple):
        return len(entries)
    return None


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Emit PAYABLES_ENGINE_TRACE for every call of the decorated engine.

    Args:
        engine_name: Engine identifier (e.g. "ledger").
        engine_version: Engine version (e.g. "1.0").
        fingerprint_fields: Parameter names included in the input
            fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)
        unknown = [f for f in fingerprint_fields if f not in signature.parameters]
        if unknown:
            raise TypeError(
                f"{func.__qualname__} has no parameter(s) {', '.join(unknown)}"
            )

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            _logger.debug("PAYABLES_ENGINE_TRACE", extra={
                "trace_type": "PAYABLES_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "function": func.__qualname__,
                "input_fingerprint": fingerprint,
                "result_size": _result_size(result),
                "duration_ms": elapsed_ms,
            })
            return result

        return wrapper

    return decorator
