"""
Structured JSON logging for the invoicing console.

Every record under the ``invoicing_kernel`` logger hierarchy is written as
one JSON line.  Messages are event names (``document_saved``,
``auth_failed``) and the data travels in ``extra={...}``.

Context fields are bound for a block of work and land on every record
logged inside it:

    correlation_id  one CLI invocation (set by scripts.cli.main)
    command         the CLI sub-command being run
    actor_id        the signed-in user acting (AppState, AuthService)
    document_id     the invoice or quotation being saved, edited or deleted

A value passed explicitly in ``extra`` wins over the bound one, so the
store id logged by ``document_saved`` replaces a draft's local key.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping
from uuid import UUID

LOGGER_PREFIX = "invoicing_kernel"

CONTEXT_FIELDS = ("correlation_id", "command", "actor_id", "document_id")

_context: ContextVar[Mapping[str, str]] = ContextVar("invoicing_log_context", default={})


class LogContext:
    """Fields bound to every record logged in the current context."""

    @staticmethod
    def current() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[dict[str, str]]:
        """
        Bind context fields for the duration of a ``with`` block.

        None values are skipped; everything else is stored as ``str``.

        Raises:
            TypeError: a field name outside CONTEXT_FIELDS.
        """
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _context.set(merged)
        try:
            yield dict(merged)
        finally:
            _context.reset(token)

    @staticmethod
    def clear() -> None:
        _context.set({})


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    """Serialize the domain values that show up in log extras."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        # InvoicingError subclasses keep their context as public attributes
        fields["exc_code"] = code
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``invoicing_kernel`` hierarchy, e.g. ``services.persistence``."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def _structured_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h.formatter, StructuredFormatter)]


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Attach one structured handler to the ``invoicing_kernel`` logger.

    Does nothing when a structured handler is already attached, so the CLI
    and the test suite can both call it.  Records do not propagate to the
    root logger.
    """
    root = logging.getLogger(LOGGER_PREFIX)
    if _structured_handlers(root):
        return root

    root.setLevel(level)
    root.propagate = False
    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)
    return root


def reset_logging() -> None:
    """Detach every handler and drop the bound context. FOR TESTING ONLY."""
    root = logging.getLogger(LOGGER_PREFIX)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.WARNING)
    LogContext.clear()
