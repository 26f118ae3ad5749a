"""JSON-lines logging for the EchoShop service.

Every record is one JSON object. Records emitted through a logger from
``get_logger(name, user_id=..., task_id=...)`` carry those fields under
``context``; the pipeline keys listed in ``PROMOTED_KEYS`` are also copied
to the top level so log queries can filter on them directly.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

PROMOTED_KEYS = ("user_id", "task_id", "agent_id")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers that log every HTTP request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "aiosqlite")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
            for key in PROMOTED_KEYS:
                if key in context:
                    entry[key] = context[key]

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextAdapter(logging.LoggerAdapter):
    """Merges its bound fields with any per-call ``extra={"context": ...}``."""

    def process(self, msg: Any, kwargs: dict) -> tuple[Any, dict]:
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, kwargs


def setup_logging(
    log_level: str | None = None,
    log_file: str | Path | None = None,
    console: bool = True,
) -> None:
    """
    Configure the root logger with JSON output.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Rotating log file. Defaults to logs/app.log.
        console: Also write JSON lines to stdout.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: dict[str, dict] = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_path),
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "formatter": "json",
            "encoding": "utf-8",
        },
    }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": "echoshop.logging_config.JSONFormatter"}},
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers)},
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )


def get_logger(name: str, **context: Any) -> logging.Logger | ContextAdapter:
    """
    Get a module logger, optionally bound to pipeline context.

    Args:
        name: Logger name (typically __name__ of the module)
        **context: Fields attached to every record, e.g. user_id="1"

    Returns:
        The logger itself, or a ContextAdapter wrapping it when context is given
    """
    logger = logging.getLogger(name)
    if context:
        return ContextAdapter(logger, context)
    return logger
