"""
freight_engines.tracer -- Engine invocation tracer emitting FREIGHT_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine entry points with one structured trace record per call.  The
    trace captures engine_name, engine_version, input_fingerprint (a
    deterministic SHA-256 prefix over selected arguments), record_count
    when the engine was handed a record sequence, and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Does NOT introduce I/O into engines; emits a log record only.
    Uses its own logger namespace (``freight_kernel.engines.tracer``) so
    that engines stay free of handler setup.

Invariants enforced:
    - Fingerprints are deterministic: mappings are key-sorted, Decimals use
      their exact string form, datetimes their ISO form, and sets are
      sorted before hashing.
    - Positional and keyword arguments fingerprint identically, because
      arguments are bound to the wrapped signature first.
    - The decorator never mutates inputs and never swallows the engine's
      exceptions; a failing call emits no trace.

Failure modes:
    - A fingerprint field that names no parameter is recorded as "null".
    - Unknown types fall back to ``str(value)``.

Usage:
    from freight_engines.tracer import traced_engine

    @traced_engine("rollup", "1.0", fingerprint_fields=("records",))
    def rollup(records, key_fn, rate_table):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

# Own namespace; configured by the application root in production.
_logger = logging.getLogger("freight_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting.

    Postconditions:
        Returns a deterministic string for None, bool, int, Decimal, str,
        Enum, date/datetime, mappings (sorted keys), sets (sorted),
        sequences (order-preserved) and dataclasses (declared field
        order).  Unknown types fall back to ``str(value)``.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (bool, int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        items = sorted(((str(k), v) for k, v in value.items()), key=lambda kv: kv[0])
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonicalize(v) for v in value)) + "}"
    if isinstance(value, Sequence):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = (
            f"{f.name}={_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}(" + ",".join(parts) + ")"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Compute a deterministic SHA-256 fingerprint of selected input fields.

    Only the fields listed in fingerprint_fields are included.  Missing
    fields are recorded as "null".  The result is a 16-char hex prefix.
    """
    parts: list[str] = []
    for name in fingerprint_fields:
        parts.append(f"{name}={_canonicalize(arguments.get(name))}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _record_count(arguments: Mapping[str, Any]) -> int | None:
    for name in ("records", "invoices", "items"):
        val = arguments.get(name)
        if isinstance(val, Sequence) and not isinstance(val, str):
            return len(val)
    return None


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits FREIGHT_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "rollup").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash.

    Returns:
        Decorator function.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind_partial(*args, **kwargs)
            arguments = bound.arguments

            fp = ""
            if fingerprint_fields:
                fp = compute_input_fingerprint(fingerprint_fields, arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "FREIGHT_ENGINE_TRACE",
                extra={
                    "trace_type": "FREIGHT_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "record_count": _record_count(arguments),
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
