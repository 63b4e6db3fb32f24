"""Logging helpers for ipfilter."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

from .config import FilterConfig, LoggingConfig

DENIAL_LOGGER = "ipfilter"


def _handler(config: LoggingConfig, level: int) -> Dict[str, Any]:
    if not config.file:
        return {"class": "logging.StreamHandler", "level": level, "formatter": "standard"}
    return {
        "class": "logging.handlers.WatchedFileHandler",
        "filename": config.file,
        "encoding": "utf-8",
        "level": level,
        "formatter": "standard",
    }


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Configure root logging and return the logger used for denials."""

    level = getattr(logging, config.level.upper(), logging.INFO)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
            },
            "handlers": {"default": _handler(config, level)},
            "loggers": {DENIAL_LOGGER: {"level": level}},
            "root": {"handlers": ["default"], "level": level},
        }
    )
    return logging.getLogger(DENIAL_LOGGER)


def log_denial(config: FilterConfig, client_ip: Optional[str], *, owner: str, route: str) -> bool:
    """Write one warning for a denied request.

    The message is only built when the sink would emit it. Returns True
    when a message was written.
    """
    if not config.log_denials:
        return False
    logger = config.logger
    if logger is None or not logger.isEnabledFor(logging.WARNING):
        return False
    logger.warning(config.message_formatter(client_ip, owner, route))
    return True


__all__ = ["DENIAL_LOGGER", "configure_logging", "log_denial"]
