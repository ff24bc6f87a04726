"""Process logging: NDJSON lines to stdout and rotating log files.

Every record becomes one JSON object::

    {"ts": "...", "severity": "INFO", "event": "MERGE_APPLIED",
     "message": "...", "commit": "abc123", "changes": 2}

Structured fields are passed with ``extra=``; ``event`` defaults to the
logger name's last component when absent. ERROR records also go to a
separate error log.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

MAIN_LOG_NAME = "flowsync-daemon.log"
ERROR_LOG_NAME = "flowsync-errors.log"

# Attributes every LogRecord has; anything else came from ``extra=``
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_SEVERITY = {"WARNING": "WARN", "CRITICAL": "ERROR"}


class JsonLineFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": _SEVERITY.get(record.levelname, record.levelname),
            "event": getattr(record, "event", record.name.rsplit(".", 1)[-1]),
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in entry:
                entry[key] = value
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    log_dir: Path | None = None,
    level: str = "INFO",
    max_bytes: int = 5_242_880,
    backup_count: int = 2,
) -> logging.Logger:
    """Install NDJSON handlers on the ``flowsync`` logger.

    Args:
        log_dir: Directory for the main and error logs; None logs to stdout only.
        level: Minimum level name.
        max_bytes: Rotation threshold per file.
        backup_count: Rotated files kept per log.

    Returns:
        The configured ``flowsync`` logger.
    """
    root = logging.getLogger("flowsync")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level.upper())
    root.propagate = False

    formatter = JsonLineFormatter()
    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        main = logging.handlers.RotatingFileHandler(
            log_dir / MAIN_LOG_NAME, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        main.setFormatter(formatter)
        root.addHandler(main)

        errors = logging.handlers.RotatingFileHandler(
            log_dir / ERROR_LOG_NAME, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        errors.setLevel(logging.ERROR)
        errors.setFormatter(formatter)
        root.addHandler(errors)

    return root


__all__ = ["JsonLineFormatter", "configure_logging", "MAIN_LOG_NAME", "ERROR_LOG_NAME"]
