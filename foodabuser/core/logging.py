"""JSON-lines logging.

Each record becomes one JSON object on stdout.  Context passed through
``extra=`` is kept only for the keys in ``EXTRA_FIELDS``; store and
guard code log with ``event`` plus whichever of the others apply::

    logger.info("Record added", extra={"event": "record_added", "collection": "meals"})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

EXTRA_FIELDS = (
    "event",
    "collection",
    "record_id",
    "period",
    "count",
    "state",
    "degraded",
    "overwrite",
)

# Third-party loggers capped at WARNING.
QUIET_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "httpx", "alembic.runtime.migration")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, record.__dict__[key])
            for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """Replace the root handlers with a single JSON handler on *stream* (stdout)."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
