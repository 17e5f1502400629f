import logging
import logging.config
import os
from datetime import datetime
from typing import Any, Dict
from app.core.config import settings

LOG_STREAMS = ("app", "error", "access", "audit")
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating_handler(log_dir: str, stream: str, level: str, formatter: str, stamp: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": os.path.join(log_dir, stream, f"{stream}-{stamp}.log"),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 10,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: str, level: str) -> Dict[str, Any]:
    """
    dictConfig for the service.

    Workflow and service messages go to the console and `app`, errors also to
    `error`. The `access` logger (LoggingMiddleware) and the `audit` logger
    (log_user_action) get files of their own so request transitions can be
    traced without the noise.
    """
    stamp = datetime.now().strftime("%Y-%m-%d")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "plain": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating_handler(log_dir, "app", level, "detailed", stamp),
            "error_file": _rotating_handler(log_dir, "error", "ERROR", "detailed", stamp),
            "access_file": _rotating_handler(log_dir, "access", "INFO", "plain", stamp),
            "audit_file": _rotating_handler(log_dir, "audit", "INFO", "plain", stamp),
        },
        "loggers": {
            "": {
                "level": level,
                "handlers": ["console", "app_file", "error_file"],
            },
            "audit": {
                "level": "INFO",
                "handlers": ["audit_file", "console"],
                "propagate": False,
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DATABASE_ECHO else "WARNING",
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }


def setup_logging():
    """Create the log directories and apply the logging config"""
    log_dir = settings.LOG_DIR
    for stream in LOG_STREAMS:
        os.makedirs(os.path.join(log_dir, stream), exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured (level={settings.LOG_LEVEL}, dir={log_dir})")
