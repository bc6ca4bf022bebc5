"""
Structured JSON logging for the reporting kernel.

Every record is one JSON line.  Records emitted while a mutation is in
flight carry a ``mutation`` object, the envelope bound by
``ReportingService.mutate``::

    {"ts": "...", "level": "INFO", "logger": "reporting_kernel.modules.reports.reducer",
     "message": "expense_added",
     "mutation": {"correlation_id": "9f3c...", "command": "AddExpense",
                  "period_id": "oct", "scope": "startup"},
     "clone_count": 3}

Reporting value types (``Decimal`` amounts, months, ledger scopes, enum
members) are rendered in their display form, so ``extra`` can be given
domain objects directly.  A ``ReportingError`` attached via ``exc_info``
contributes its ``code`` and structured attributes as ``error_*`` keys.
"""

__all__ = [
    "MutationEnvelope",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, fields, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator

from reporting_kernel.domain.ledger import LedgerScope
from reporting_kernel.domain.values import CalendarMonth
from reporting_kernel.exceptions import ReportingError

# ---------------------------------------------------------------------------
# Mutation envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MutationEnvelope:
    """Identity of the mutation a log record belongs to."""

    correlation_id: str | None = None
    command: str | None = None
    period_id: str | None = None
    scope: str | None = None
    entry_id: str | None = None

    def merged(self, **values: Any) -> "MutationEnvelope":
        """Copy with the non-None ``values`` applied.

        Raises:
            TypeError: for a field the envelope does not have.
        """
        unknown = set(values) - _ENVELOPE_FIELDS
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        changes = {k: _context_text(v) for k, v in values.items() if v is not None}
        return replace(self, **changes) if changes else self

    def as_dict(self) -> dict[str, str]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


_ENVELOPE_FIELDS = frozenset(f.name for f in fields(MutationEnvelope))
_EMPTY = MutationEnvelope()


def _context_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class LogContext:
    """
    Holds the envelope of the mutation currently being processed.

    The envelope lives in a single ``ContextVar`` so that ``bind`` restores
    the previous envelope as a whole on exit.  Scopes and other values are
    stored as text (``LedgerScope`` renders as ``startup`` or
    ``project:<id>``).
    """

    _envelope: ContextVar[MutationEnvelope] = ContextVar(
        "reporting_mutation_envelope", default=_EMPTY
    )

    @classmethod
    def current(cls) -> MutationEnvelope:
        return cls._envelope.get()

    @classmethod
    def set(cls, **values: Any) -> None:
        """Update envelope fields. None values leave a field unchanged."""
        cls._envelope.set(cls.current().merged(**values))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return cls.current().as_dict()

    @classmethod
    def clear(cls) -> None:
        cls._envelope.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **values: Any) -> Iterator[MutationEnvelope]:
        """Apply ``values`` for the duration of the block, then restore."""
        token = cls._envelope.set(cls.current().merged(**values))
        try:
            yield cls.current()
        finally:
            cls._envelope.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Render reporting value types in their display form."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, CalendarMonth):
            return obj.label
        if isinstance(obj, LedgerScope):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return super().default(obj)


def _error_fields(exc: BaseException) -> dict[str, Any]:
    out: dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }
    if isinstance(exc, ReportingError):
        out["error_code"] = exc.code
        for k, v in vars(exc).items():
            if not k.startswith("_"):
                out[f"error_{k}"] = v
    return out


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        envelope = LogContext.get_all()
        if envelope:
            payload["mutation"] = envelope

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            for key, val in _error_fields(record.exc_info[1]).items():
                payload.setdefault(key, val)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder, default=str)


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "reporting_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the reporting_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_installed: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Install the JSON handler on the reporting_kernel logger.

    Only the first call installs anything; later calls return the handler
    already in place.
    """
    global _installed
    with _lock:
        if _installed is not None:
            return _installed
        root_logger = logging.getLogger(_LOGGER_PREFIX)
        root_logger.setLevel(level)
        root_logger.propagate = False

        h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        h.setFormatter(StructuredFormatter())
        root_logger.addHandler(h)
        _installed = h
        return h


def reset_logging() -> None:
    """Remove the installed handler. FOR TESTING ONLY."""
    global _installed
    with _lock:
        logger = logging.getLogger(_LOGGER_PREFIX)
        if _installed is not None:
            logger.removeHandler(_installed)
            _installed = None
        logger.setLevel(logging.WARNING)
