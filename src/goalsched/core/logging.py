"""Centralized logging configuration."""

import logging
from logging.config import dictConfig


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure engine logging once per process.

    Records go to stderr, so reports written to stdout stay clean. Only the
    ``goalsched`` logger tree follows ``log_level``; other libraries stay at
    WARNING.
    """
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                "goalsched": {
                    "level": log_level,
                }
            },
            "root": {
                "handlers": ["console"],
                "level": "WARNING",
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
