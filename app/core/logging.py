import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from app.core.config import settings

MAX_LOG_BYTES = 10485760
LOG_BACKUP_COUNT = 5


class RequestIdFilter(logging.Filter):
    """Gives every record a request_id so formatters can always reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def _rotating_file(log_dir: Path, filename: str, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filters": ["request_id"],
        "filename": str(log_dir / filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUP_COUNT,
    }


def build_logging_config(log_dir: Path) -> Dict[str, Any]:
    # Score changes are also kept in scoring.log
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] [%(request_id)s] %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "file": _rotating_file(log_dir, "app.log", "INFO"),
            "error_file": _rotating_file(log_dir, "error.log", "ERROR"),
            "scoring_file": _rotating_file(log_dir, "scoring.log", "DEBUG"),
        },
        "root": {
            "level": "INFO",
            "handlers": ["console", "file", "error_file"],
        },
        "loggers": {
            "app": {
                "level": "INFO",
                "handlers": ["console", "file", "error_file"],
                "propagate": False,
            },
            "app.services.scoring": {
                "level": "DEBUG",
                "handlers": ["console", "file", "error_file", "scoring_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def configure_logging():
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))
