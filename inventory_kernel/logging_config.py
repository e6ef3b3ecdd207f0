"""
Structured JSON logging for the inventory core.

Every record under the ``inventory_kernel`` logger is written as one JSON
line.  Keyword ``extra`` fields become top-level keys, and the fields bound
through ``LogContext`` (who is acting, on which entity) ride along on every
record emitted while they are bound.
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
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Iterator

LOGGER_ROOT = "inventory_kernel"

# ---------------------------------------------------------------------------
# Bound context
# ---------------------------------------------------------------------------

_bound: ContextVar[dict[str, str]] = ContextVar("inventory_log_context", default={})


class LogContext:
    """
    Per-thread / per-task fields stamped onto every log record.

    The bound mapping is replaced, never mutated, so a ``bind`` block can be
    unwound with the ContextVar token.
    """

    FIELDS = ("actor_id", "entity_id")

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> dict[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = dict(_bound.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Bind fields until cleared.  None values leave a field as it was."""
        _bound.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_bound.get())

    @classmethod
    def clear(cls) -> None:
        _bound.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block."""
        token = _bound.set(cls._merged(fields))
        try:
            yield
        finally:
            _bound.reset(token)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # InventoryKernelError subclasses keep their context as public attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, then fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. ``get_logger("services.cache_store")``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_setup_lock = threading.Lock()
_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``inventory_kernel`` logger.

    Only the first call has any effect; later calls return immediately so
    that library entry points may call it unconditionally.
    """
    global _handler
    with _setup_lock:
        if _handler is not None:
            return
        _handler = handler or logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(LOGGER_ROOT)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(_handler)


def reset_logging() -> None:
    """Detach everything ``configure_logging`` attached.  Used by tests."""
    global _handler
    with _setup_lock:
        _handler = None
        root = logging.getLogger(LOGGER_ROOT)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
