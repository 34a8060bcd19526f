"""JSON log lines for the backend plus a request-scoped correlation id.

Every record becomes one JSON object. Values passed through ``extra=`` land
as top-level keys, and a :class:`~jarvis.core.errors.DomainError` attached
via ``exc_info`` contributes its code, operational flag and context.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any, Final, TextIO

from jarvis.core.errors import DomainError

REQUEST_ID_CTX: Final[ContextVar[str | None]] = ContextVar("request_id", default=None)

_LOGGING_CONFIGURED: bool = False

_NOISY_LOGGERS: Final[tuple[str, ...]] = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "aiosqlite",
)

# Attribute names every LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "request_id", "taskName"}


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _one_line(text: str) -> str:
    return text.replace("\n", " | ")


class JsonLogFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = REQUEST_ID_CTX.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (key, _jsonable(value))
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None
        )

        if record.exc_info:
            entry.update(self._describe_exception(record))
        if record.stack_info:
            entry["stack"] = _one_line(self.formatStack(record.stack_info))

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"))

    def _describe_exception(self, record: logging.LogRecord) -> dict[str, Any]:
        assert record.exc_info is not None
        fields: dict[str, Any] = {"exc_info": _one_line(self.formatException(record.exc_info))}
        error = record.exc_info[1]
        if isinstance(error, DomainError):
            fields["error_code"] = error.code
            fields["operational"] = error.is_operational
            fields["error_context"] = _jsonable(error.context)
        return fields


def configure_logging(
    level_name: str,
    *,
    stream: TextIO | None = None,
    quiet_loggers: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Install the JSON handler on the root logger; later calls are no-ops."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level_name))

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    _LOGGING_CONFIGURED = True


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelNamesMapping().get(level_name.strip().upper())
    return level if level is not None else logging.INFO


def bind_request_id(request_id: str) -> Token[str | None]:
    """Bind a request_id to the current context."""
    return REQUEST_ID_CTX.set(request_id)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def reset_request_id(token: Token[str | None]) -> None:
    REQUEST_ID_CTX.reset(token)


__all__ = [
    "JsonLogFormatter",
    "bind_request_id",
    "configure_logging",
    "get_request_id",
    "reset_request_id",
]
