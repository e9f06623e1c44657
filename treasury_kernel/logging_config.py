"""
Structured JSON logging for the treasury kernel.

Every record leaves the ``treasury_kernel`` logger as one JSON object per
line.  Request-scoped fields (which class, which user, which tax operation)
live in ``LogContext`` and are stamped onto every record emitted while they
are bound, so individual log calls only pass event-specific ``extra`` data.

Kernel exceptions logged with ``exc_info`` contribute their ``code`` as
``exc_code`` and their public attributes as ``exc_<name>``.
"""

__all__ = [
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("treasury_log_context", default=_EMPTY)


class LogContext:
    """
    Per-thread / per-task log fields, backed by a single ContextVar.

    The stored mapping is never mutated in place; each change installs a
    new mapping, so threads and tasks that copied the context are isolated.
    """

    FIELDS = ("correlation_id", "class_code", "user_id", "operation")

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        class_code: str | None = None,
        user_id: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Update the given fields; None leaves a field unchanged."""
        _context.set(
            cls._merged(
                correlation_id=correlation_id,
                class_code=class_code,
                user_id=user_id,
                operation=operation,
            )
        )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a ``with`` block, then restore."""
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context fields: {sorted(unknown)}")
        token = _context.set(cls._merged(**fields))
        try:
            yield cls
        finally:
            _context.reset(token)

    @staticmethod
    def _merged(**fields: str | None) -> Mapping[str, str]:
        current = dict(_context.get())
        current.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(current)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else on a record came from extra=
_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Renders a LogRecord as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            for name, value in vars(exc).items():
                if not name.startswith("_"):
                    payload[f"exc_{name}"] = value
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_ROOT_NAME = "treasury_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Return ``treasury_kernel.<name>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``treasury_kernel`` logger.

    Only the first call has an effect; later calls return immediately so
    library entry points can call it unconditionally.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    out = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    out.setFormatter(StructuredFormatter())

    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(out)


def reset_logging() -> None:
    """Undo configure_logging(). FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
