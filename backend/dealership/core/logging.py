"""
Back-office logging.

One line per record, pipe-separated, so account events (logins, role
denials, last-admin refusals, failed notifications) are easy to grep:

    2026-10-18T09:12:03+00:00 | WARNING  | dealership.deps:guard:88 | Account ... denied accounts:list
"""

import logging
import sys
from datetime import datetime, timezone

from dealership.core.config import get_settings

ROOT_LOGGER = "dealership"

# Third-party loggers that drown out account events at INFO
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "botocore", "boto3", "s3transfer")


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="seconds")
        line = (
            f"{timestamp} | {record.levelname:<8} | "
            f"{record.name}:{record.funcName}:{record.lineno} | "
            f"{record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1]:
            line += f" | EXCEPTION: {self.formatException(record.exc_info)}"
        return line


def setup_logging() -> None:
    """Install the structured handler on the root logger. Safe to call twice."""
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if not any(isinstance(h.formatter, StructuredFormatter) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DATABASE_ECHO else logging.WARNING
    )

    logging.getLogger(ROOT_LOGGER).info(
        "Logging initialized (level=%s, env=%s)", settings.LOG_LEVEL, settings.APP_ENV
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``dealership`` namespace, e.g. ``get_logger("auth")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
