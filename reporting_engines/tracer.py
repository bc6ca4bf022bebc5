"""
reporting_engines.tracer -- REPORTING_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and, after it returns,
    logs which engine ran, on what input and for how long.  The input is
    identified by a fingerprint over selected keyword arguments: equal
    fingerprints mean the engine saw equal inputs.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; does not mutate inputs.

Invariants enforced:
    - Each value has one canonical text form, registered per type on
      ``canonicalize``.  Amounts are compared by value, so
      ``Decimal("300")`` and ``Decimal("300.00")`` fingerprint alike.
    - An ``ExpenseEntry`` is rendered field by field; its clone lineage
      (``origin_month``, ``cloned_from``) is part of the fingerprint.
    - Mapping keys and set members are sorted; sequences keep their order.

Failure modes:
    - Fingerprint fields absent from kwargs are rendered as ``null``.
    - ``TypeError`` for a fingerprinted value with no canonical form.
      Register one on ``canonicalize`` rather than relying on ``str``.

Usage:
    from reporting_engines.tracer import traced_engine

    @traced_engine("propagation", "1.0", fingerprint_fields=("entry", "scope"))
    def plan(self, *, entry, scope, periods):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from reporting_kernel.domain.ledger import ExpenseEntry, LedgerScope
from reporting_kernel.domain.values import CalendarMonth
from reporting_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

_EXPENSE_FIELDS = (
    "id",
    "item",
    "amount",
    "classification",
    "category",
    "funding_source",
    "origin_month",
    "date",
    "periodicity",
    "cloned_from",
)


@functools.singledispatch
def canonicalize(value: Any) -> str:
    """Stable text form of ``value`` for input fingerprints."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        names = [f.name for f in dataclasses.fields(value)]
        return _record(type(value).__name__, value, names)
    raise TypeError(f"No canonical form for {type(value).__name__}")


def _record(kind: str, value: Any, names: tuple[str, ...] | list[str]) -> str:
    body = ",".join(f"{name}={canonicalize(getattr(value, name))}" for name in names)
    return f"{kind}({body})"


@canonicalize.register(type(None))
def _(value: None) -> str:
    return "null"


@canonicalize.register(bool)
def _(value: bool) -> str:
    return "true" if value else "false"


@canonicalize.register(int)
def _(value: int) -> str:
    return str(value)


@canonicalize.register(str)
def _(value: str) -> str:
    if isinstance(value, Enum):
        value = value.value
    return json.dumps(value)


@canonicalize.register(Decimal)
def _(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    return format(value.normalize(), "f")


@canonicalize.register(date)
def _(value: date) -> str:
    return value.isoformat()


@canonicalize.register(Enum)
def _(value: Enum) -> str:
    return canonicalize(value.value)


@canonicalize.register(CalendarMonth)
def _(value: CalendarMonth) -> str:
    return f"month({value.index})"


@canonicalize.register(LedgerScope)
def _(value: LedgerScope) -> str:
    return f"scope({value})"


@canonicalize.register(ExpenseEntry)
def _(value: ExpenseEntry) -> str:
    return _record("expense", value, _EXPENSE_FIELDS)


@canonicalize.register(Mapping)
def _(value: Mapping) -> str:
    items = sorted((canonicalize(k), canonicalize(v)) for k, v in value.items())
    return "{" + ",".join(f"{k}:{v}" for k, v in items) + "}"


@canonicalize.register(list)
@canonicalize.register(tuple)
def _(value: list | tuple) -> str:
    return "[" + ",".join(canonicalize(v) for v in value) + "]"


@canonicalize.register(set)
@canonicalize.register(frozenset)
def _(value: set | frozenset) -> str:
    return "{" + ",".join(sorted(canonicalize(v) for v in value)) + "}"


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16 hex chars of SHA-256 over the canonical selected kwargs."""
    canonical = "|".join(
        f"{name}={canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits REPORTING_ENGINE_TRACE after each call.

    Args:
        engine_name: Engine identifier (e.g., "propagation").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Keyword argument names to include in
            the input fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = compute_input_fingerprint(fingerprint_fields, kwargs) if fingerprint_fields else ""

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "REPORTING_ENGINE_TRACE",
                extra={
                    "trace_type": "REPORTING_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "fingerprint_fields": list(fingerprint_fields),
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
