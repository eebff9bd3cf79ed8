"""AdsIntel — Structured JSON Logging.

Every module logs through get_logger(); one JSON object per line on stdout.
Pass context with `extra={...}`; only the keys in EXTRA_FIELDS are emitted.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from app.config import settings

EXTRA_FIELDS = ("user_id", "operation", "count", "account_id", "status_code")

ROOT_LOGGER = "adsintel"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def _root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """Child of the shared `adsintel` logger, e.g. adsintel.sync.meta."""
    return _root().getChild(name)
