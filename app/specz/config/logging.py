import inspect
import json
import logging
import logging.config
import os
from typing import Optional
from specz.config.settings import get_settings, PipelineSettings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger; the caller's module name is used when `name` is omitted."""
    if name is None:
        name = inspect.currentframe().f_back.f_globals.get("__name__", "specz")
    return logging.getLogger(name)


def logging_config(settings: PipelineSettings) -> dict:
    """dictConfig for console output plus a rotating JSON file in settings.log_dir."""
    level = settings.log_level
    handlers = ["console", "file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": "specz.config.logging.JsonFormatter"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default", "level": level},
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "json",
                "filename": os.path.join(settings.log_dir, "specz.log"),
                "maxBytes": 10 * 1024 * 1024,
                "backupCount": 5,
                "level": level,
            },
        },
        "root": {"handlers": handlers, "level": level},
        # Worker threads of the template matching pool log at debug level
        "loggers": {
            "concurrent.futures": {"level": "WARNING", "handlers": handlers, "propagate": False},
        },
    }


def init_logging(settings: Optional[PipelineSettings] = None) -> None:
    """
    Install the pipeline's logging configuration.

    Raises:
        OSError: If the log directory cannot be created
    """
    settings = settings or get_settings()
    os.makedirs(settings.log_dir, exist_ok=True)
    logging.config.dictConfig(logging_config(settings))
    get_logger(__name__).info(f"Logging initialized at {settings.log_level} in {settings.log_dir}")


class JsonFormatter(logging.Formatter):
    """One JSON object per record for the rotating log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # Template and spectrum ids passed via `extra`
        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)
        return json.dumps(entry, ensure_ascii=False)
