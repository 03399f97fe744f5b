"""
SessionPulse Logging Configuration
==================================

One setup_logging() call shared by the CLI, the cron script and the API:
- Human-readable lines for terminals
- JSON lines carrying run / stage / session context for log aggregation
- Optional rotating log file

Context travels through `extra=`:

    logger.info("Scored session", extra={"session_id": sid, "score": 73, "status": "problematic"})

Usage:
    from sessionpulse.orchestrator.logging_config import setup_logging

    setup_logging(json_output=True, log_file="logs/pipeline.log")
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional

# Context attributes copied into JSON lines, in this order.
# run_id/duration: pipeline run, stage/count: pipeline stages,
# session_id/score/status: per-session scoring.
EXTRA_FIELDS = ("run_id", "stage", "count", "duration", "session_id", "score", "status")

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")

HUMAN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

        {"ts": "...", "level": "INFO", "logger": "sessionpulse.scoring...",
         "msg": "...", "session_id": "evening-calm", "score": 73}

    Records logged from the enrichment / scoring pools also carry their
    worker thread name.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.threadName and record.threadName != "MainThread":
            entry["thread"] = record.threadName

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> logging.Logger:
    """
    Configure root logging and return the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO
        json_output: JSON lines instead of human-readable lines
        log_file: Also write to this file, rotated at max_bytes
        quiet_loggers: Third-party loggers held at WARNING
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = JSONFormatter() if json_output else logging.Formatter(
        HUMAN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"
    )

    # stderr keeps stdout clean for `rank --json` and CSV export
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Logging configured: level={level} json={json_output} file={log_file or 'none'}")
    return root
