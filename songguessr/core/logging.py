# ============================================================================
# FILE: songguessr/core/logging.py
# ============================================================================
import logging
import logging.config
from songguessr.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def setup_logging(level: str = None) -> None:
    """Configure root logging once for the whole application"""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": (level or settings.LOG_LEVEL).upper(),
        },
        "loggers": {
            # SQL echo is controlled by DEBUG, keep the engine logger quiet otherwise
            "sqlalchemy.engine": {"level": "INFO" if settings.DEBUG else "WARNING"},
        },
    })
