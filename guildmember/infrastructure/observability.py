"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (guild_id, member_id, mutation, ...) surfaced when present
    - JSON format in production, human-readable in development
    - At most one guildmember handler on the root logger

Design Decisions:
    - setup_logging called once per guild session (main.guild_session)
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "guild_id", "member_id", "mutation", "error_code",
    "attempt", "status_code", "method", "path",
)
_HANDLER_NAME = "guildmember"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the guildmember stream handler on the root logger.

    Repeated calls replace the handler installed by a previous call, so one
    process opening several guild sessions logs each record once.
    """
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
