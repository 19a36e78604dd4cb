"""Process-wide logging for InstaSafar.

``configure_logging()`` is called once by the CLI (and by the test suite's
autouse fixture); library modules only ever do
``logger = logging.getLogger(__name__)``.

Every record is tagged with the search session it was emitted in.  A search
session binds its id with :func:`session_context`; outside of one the tag is
``"-"``.  Records may also carry listing context passed through ``extra=``
(see :data:`CONTEXT_FIELDS`), which the JSON formatter lifts into its
``"extra"`` object.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Final

__all__ = [
    "CONTEXT_FIELDS",
    "JsonFormatter",
    "SESSION_ID_CTX",
    "SessionContextFilter",
    "configure_logging",
    "session_context",
]

#: Id of the search session currently evaluating results.
SESSION_ID_CTX: ContextVar[str] = ContextVar("session_id", default="-")

#: Record attributes that describe what a log line is about.  Any of them set
#: via ``extra=`` appear in JSON output next to ``session_id``.
CONTEXT_FIELDS: Final[tuple[str, ...]] = (
    "session_id",
    "listing_id",
    "listing_type",
    "resource",
    "user_id",
)

_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_FORMATS: Final[tuple[str, ...]] = ("text", "json")

# Third-party loggers that are only interesting when debugging.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "asyncio", "aiosqlite")

_TEXT_LAYOUT = "%(asctime)s %(levelname)-8s [%(session_id)s] %(name)s: %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    """Tag every record emitted inside the block with *session_id*."""
    token = SESSION_ID_CTX.set(session_id)
    try:
        yield
    finally:
        SESSION_ID_CTX.reset(token)


class SessionContextFilter(logging.Filter):
    """Stamp ``record.session_id`` from :data:`SESSION_ID_CTX`."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.session_id = SESSION_ID_CTX.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    ``ts``, ``level``, ``logger``, ``message`` and ``extra`` are always
    present; ``extra`` holds whichever :data:`CONTEXT_FIELDS` the record
    carries.  ``exc_info`` is added for records logged with a traceback.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        stamp = datetime.fromtimestamp(record.created, tz=UTC)
        payload: dict[str, Any] = {
            "ts": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "extra": {
                field: getattr(record, field)
                for field in CONTEXT_FIELDS
                if hasattr(record, field)
            },
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _resolve(value: str | None, env_var: str, default: str, allowed: tuple[str, ...]) -> str:
    raw = value or os.environ.get(env_var) or default
    for candidate in allowed:
        if candidate.lower() == raw.lower():
            return candidate
    raise ValueError(f"Unknown {env_var} {raw!r}; expected one of {', '.join(allowed)}")


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Install a single stderr handler on the root logger.

    *level* and *fmt* fall back to ``$LOG_LEVEL`` / ``$LOG_FORMAT``, then to
    ``INFO`` / ``text``.  When the root logger already has handlers and
    *force* is false, only the level is updated.

    Raises:
        ValueError: On an unknown level or format.
    """
    resolved_level = _resolve(level, "LOG_LEVEL", "INFO", _LEVELS)
    resolved_fmt = _resolve(fmt, "LOG_FORMAT", "text", _FORMATS)

    root = logging.getLogger()
    root.setLevel(resolved_level)
    if root.handlers and not force:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(SessionContextFilter())
    if resolved_fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_LAYOUT, _TEXT_DATEFMT))
    root.handlers = [handler]

    quiet = logging.DEBUG if resolved_level == "DEBUG" else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
