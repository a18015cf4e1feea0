import json
import logging
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any

# Third-party loggers that echo request signing details at DEBUG.
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


def build_logging_config(level: str = "INFO", fmt: str = "json") -> dict[str, Any]:
    console_formatter = "json" if fmt == "json" else "plain"
    loggers: dict[str, Any] = {
        "s3_gateway.startup": {
            "handlers": ["startup_console"],
            "level": "INFO",
            "propagate": False,
        },
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": console_formatter,
            },
            "startup_console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
            },
        },
        "root": {"level": level.upper(), "handlers": ["console"]},
        "loggers": loggers,
    }


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    dictConfig(build_logging_config(level, fmt))


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra={"extra": {...}}`` fields are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        structured = getattr(record, "extra", None)
        if isinstance(structured, dict):
            payload.update(structured)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
