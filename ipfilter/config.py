"""Filter configuration and the process-wide default."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Optional

from .actions import forbidden
from .registry import DenialAction
from .resolvers import remote_address

log = logging.getLogger(__name__)

AddressResolver = Callable[[Any], Optional[str]]
MessageFormatter = Callable[[Optional[str], str, str], str]


class ConfigError(RuntimeError):
    """Configuration error exception

    Raised for unknown configuration options and for invalid
    rules files
    """


def default_denial_message(client_ip: Optional[str], owner: str, route: str) -> str:
    return f"[ipfilter] Access denied for IP: {client_ip} on {owner}#{route}"


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration

    Log level and optional log file for ``configure_logging``. Denial
    logging itself is switched on ``FilterConfig.log_denials``."""

    level: str = "INFO"
    file: Optional[str] = None


@dataclass(slots=True)
class FilterConfig:
    """Settings consulted when a route has no override.

    ``address_resolver`` and ``on_denied`` are called with the request.
    ``logger`` is any object offering ``isEnabledFor`` and ``warning``;
    with no logger set, denials are not logged.

    ``message_formatter`` is called as ``(client_ip, owner, route)`` and
    returns the text that is written to the logger at WARNING; it does not
    receive the logger itself."""

    address_resolver: AddressResolver = remote_address
    on_denied: DenialAction = forbidden
    logger: Optional[logging.Logger] = None
    log_denials: bool = True
    message_formatter: MessageFormatter = default_denial_message


_lock = RLock()
_config: Optional[FilterConfig] = None


def get_config() -> FilterConfig:
    """Return the process default, creating it on first access."""
    global _config
    current = _config
    if current is not None:
        return current
    with _lock:
        if _config is None:
            _config = FilterConfig()
        return _config


def configure(**options: Any) -> FilterConfig:
    """Replace the process default with a copy carrying ``options``.

    Meant to run once at startup; concurrent writers are serialised but
    readers may observe either the old or the new configuration.
    """
    global _config
    names = {f.name for f in dataclasses.fields(FilterConfig)}
    unknown = sorted(set(options) - names)
    if unknown:
        raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")
    with _lock:
        _config = dataclasses.replace(get_config(), **options)
        log.debug("Filter configuration updated: %s", ", ".join(sorted(options)))
        return _config


def reset_config() -> FilterConfig:
    """Restore all defaults, mainly for test isolation."""
    global _config
    with _lock:
        _config = FilterConfig()
        return _config


__all__ = [
    "AddressResolver",
    "ConfigError",
    "FilterConfig",
    "LoggingConfig",
    "MessageFormatter",
    "configure",
    "default_denial_message",
    "get_config",
    "reset_config",
]
