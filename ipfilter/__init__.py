"""IP allow-list filtering for FastAPI routes."""
from __future__ import annotations

from .actions import deny_with_status, forbidden
from .config import ConfigError, FilterConfig, configure, get_config, reset_config
from .evaluator import AccessEvaluator, Decision
from .integration import AccessDenied, IpFilter, install
from .matcher import is_allowed
from .registry import ALL_ROUTES, AllowList, Restriction, RestrictionRegistry
from .resolvers import forwarded_address, remote_address
from .testmode import (
    disable_test_mode,
    enable_test_mode,
    is_test_mode,
    with_ip_filter,
    without_ip_filter,
)

__version__ = "0.1.0"

__all__ = [
    "ALL_ROUTES",
    "AccessDenied",
    "AccessEvaluator",
    "AllowList",
    "ConfigError",
    "Decision",
    "FilterConfig",
    "IpFilter",
    "Restriction",
    "RestrictionRegistry",
    "configure",
    "deny_with_status",
    "disable_test_mode",
    "enable_test_mode",
    "forbidden",
    "forwarded_address",
    "get_config",
    "install",
    "is_allowed",
    "is_test_mode",
    "remote_address",
    "reset_config",
    "with_ip_filter",
    "without_ip_filter",
]
