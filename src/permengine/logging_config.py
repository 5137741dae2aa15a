"""Process-wide logging setup."""

import logging
from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    """Install a console handler on the root logger.

    Called once from the composition root. Does nothing when the root logger
    already has handlers, e.g. under uvicorn's or pytest's logging.
    """
    if logging.getLogger().handlers:
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )
