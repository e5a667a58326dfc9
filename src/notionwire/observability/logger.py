"""Single-line JSON logging for notionwire.

Transport, rate limiter and pagination code log through child loggers of
``"notionwire"``.  Each record is rendered as one JSON object so request
traces can be grepped or shipped to a log pipeline without extra parsing::

    {"ts": "2026-03-02T09:15:00.412+00:00", "level": "DEBUG",
     "logger": "notionwire.rate_limit", "message": "Rate limit wait",
     "waited_ms": 412.7, "queue_depth": 2}

Structured fields travel in ``extra={"extra_fields": {...}}``::

    log = get_logger("notionwire.pagination")
    log.debug("Page fetched", extra={"extra_fields": {"pages_fetched": 3}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_RESERVED_KEYS = frozenset({"ts", "level", "logger", "message"})


class StructuredFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a compact JSON object.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Caller-supplied ``extra_fields`` are merged at the top level but can not
    overwrite the guaranteed keys.  Exceptions are serialised under
    ``exception`` together with their type name under ``exc_type``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if fields:
            for key, value in fields.items():
                if key not in _RESERVED_KEYS:
                    entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_type"] = type(record.exc_info[1]).__name__
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


# Names that already carry a StructuredFormatter handler.
_configured: set[str] = set()


def get_logger(
    name: str = "notionwire",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the logger *name*, attaching a JSON handler on first use.

    Only the root ``"notionwire"`` logger receives a handler; child loggers
    such as ``"notionwire.transport"`` propagate to it, so repeated calls
    never duplicate output.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"notionwire"``.
    level:
        Level applied to the root ``"notionwire"`` logger the first time it
        is configured.  Accepts an ``int`` or a level name such as
        ``"DEBUG"``.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.
    """
    root_name = name.split(".", 1)[0]
    root = logging.getLogger(root_name)

    if root_name not in _configured:
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        root.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.propagate = False

        _configured.add(root_name)

    return logging.getLogger(name)
