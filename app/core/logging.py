"""Logging setup for the user-account service.

Two output modes, picked by LOG_JSON:

  _ContainerFormatter: one human-readable line per record, for a terminal.
  _JsonFormatter:      one JSON object per record (JSON Lines), for a log
                        aggregator that filters on fields such as
                        request_id or actor_id.

Request-scoped fields are attached to records by RequestContextMiddleware
(request_id on every record) and by handlers through ``extra=`` (actor_id,
target_id).  Passwords, password hashes and bearer tokens are never passed
to a logger.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar

# Third-party loggers that are noisy at DEBUG.
_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
)


# Current request ID; set by RequestContextMiddleware, "-" outside a request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Stamp the current request_id onto every record the handler sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter for container stdout.

    WARNING and above get a ``[file:line]`` suffix.
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Splice milliseconds in before the +HHMM offset.
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter; context fields become top-level keys."""

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "actor_id",
        "target_id",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            # "-" is the request_id placeholder outside a request
            if value is not None and value != "-":
                entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Route all logging to stdout at ``level_name``.

    Unknown level names fall back to INFO.  Third-party loggers are held at
    WARNING unless the configured level is stricter.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    # On the handler, not a logger: logger filters skip propagated records.
    handler.addFilter(_RequestContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
