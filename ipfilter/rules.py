"""Loading static filter rules from a JSON file."""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Set

from .actions import deny_with_status
from .config import ConfigError, FilterConfig, LoggingConfig, configure
from .integration import IpFilter
from .log import configure_logging
from .resolvers import forwarded_address

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FilterRules:
    """Rules for one named filter

    ``allow`` becomes the catch-all restriction narrowed by ``only`` and
    ``except_``; ``routes`` holds per-route allow-lists which take
    precedence over it."""

    name: str
    parent: Optional[str] = None
    allow: Optional[List[str]] = None
    only: Optional[List[str]] = None
    except_: Optional[List[str]] = None
    routes: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(slots=True)
class RulesConfig:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    log_denials: bool = True
    trusted_proxies: List[str] = field(default_factory=list)
    deny_status: int = 403
    filters: Dict[str, FilterRules] = field(default_factory=dict)

    def _options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "log_denials": self.log_denials,
            "on_denied": deny_with_status(self.deny_status),
        }
        if self.trusted_proxies:
            options["address_resolver"] = forwarded_address(self.trusted_proxies)
        return options

    def filter_config(self, base: Optional[FilterConfig] = None) -> FilterConfig:
        """Return a new configuration with these settings applied to ``base``."""
        return dataclasses.replace(base or FilterConfig(), **self._options())

    def apply(self) -> FilterConfig:
        """Apply these settings to the process default configuration.

        The logging section is applied as well, and the configured logger
        becomes the denial sink.
        """
        logger = configure_logging(self.logging)
        return configure(logger=logger, **self._options())

    def build_filters(self, config: Optional[FilterConfig] = None) -> Dict[str, IpFilter]:
        """Create one ``IpFilter`` per entry, parents before children."""
        built: Dict[str, IpFilter] = {}

        def build(name: str, pending: Set[str]) -> IpFilter:
            if name in built:
                return built[name]
            if name in pending:
                raise ConfigError(f"Filter inheritance cycle involving '{name}'")
            rules = self.filters[name]
            parent = None
            if rules.parent is not None:
                if rules.parent not in self.filters:
                    raise ConfigError(f"Filter '{name}' has unknown parent '{rules.parent}'")
                parent = build(rules.parent, pending | {name})
            ip_filter = IpFilter(name, parent=parent, config=None if parent else config)
            if rules.allow is not None:
                ip_filter.filter_ip(*rules.allow, only=rules.only, except_=rules.except_)
            for route, patterns in rules.routes.items():
                ip_filter.restrict(route, *patterns)
            built[name] = ip_filter
            return ip_filter

        for name in self.filters:
            build(name, set())
        log.debug("Built %d filters from rules", len(built))
        return built


def _expect(obj: MutableMapping[str, Any], key: str, ctx: str) -> Any:
    if key not in obj:
        raise ConfigError(f"Missing field '{key}' in {ctx}")
    return obj[key]


def _load_list(value: Any, ctx: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"Expected list for {ctx}")
    return value


def _load_mapping(value: Any, ctx: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected mapping for {ctx}")
    return value


def _load_patterns(value: Any, ctx: str) -> List[str]:
    patterns = _load_list(value, ctx)
    for item in patterns:
        if not isinstance(item, str):
            raise ConfigError(f"Expected string entries in {ctx}")
    return list(patterns)


def _optional_patterns(raw: Mapping[str, Any], key: str, ctx: str) -> Optional[List[str]]:
    if raw.get(key) is None:
        return None
    return _load_patterns(raw[key], f"{ctx}.{key}")


def _load_filter_rules(name: str, raw: Mapping[str, Any]) -> FilterRules:
    ctx = f"filters.{name}"
    allow = _optional_patterns(raw, "allow", ctx)
    only = _optional_patterns(raw, "only", ctx)
    except_ = _optional_patterns(raw, "except", ctx)
    if allow is None and (only is not None or except_ is not None):
        raise ConfigError(f"'only'/'except' in {ctx} require 'allow'")

    routes = {
        str(route): _load_patterns(patterns, f"{ctx}.routes.{route}")
        for route, patterns in _load_mapping(raw.get("routes"), f"{ctx}.routes").items()
    }

    parent = raw.get("parent")
    return FilterRules(
        name=name,
        parent=str(parent) if parent is not None else None,
        allow=allow,
        only=only,
        except_=except_,
        routes=routes,
    )


def _load_deny_status(value: Any) -> int:
    try:
        status = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid deny_status: {value!r}") from exc
    if not 400 <= status <= 599:
        raise ConfigError(f"deny_status must be a 4xx or 5xx code, got {status}")
    return status


def load_rules_config(path: Path) -> RulesConfig:
    data = _load_json(path)
    if not isinstance(data, Mapping):
        raise ConfigError(f"{path.name} must contain an object")

    logging_raw = _load_mapping(data.get("logging"), "logging")
    logging_cfg = LoggingConfig(
        level=str(logging_raw.get("level", "INFO")),
        file=str(logging_raw["file"]) if logging_raw.get("file") is not None else None,
    )

    filters_raw = _load_mapping(_expect(dict(data), "filters", "rules"), "filters")
    filters = {
        str(name): _load_filter_rules(str(name), _load_mapping(raw, f"filters.{name}"))
        for name, raw in filters_raw.items()
    }

    return RulesConfig(
        logging=logging_cfg,
        log_denials=bool(logging_raw.get("log_denials", True)),
        trusted_proxies=_load_patterns(data.get("trusted_proxies"), "trusted_proxies"),
        deny_status=_load_deny_status(data.get("deny_status", 403)),
        filters=filters,
    )


def _load_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file missing: {path}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


__all__ = ["FilterRules", "RulesConfig", "load_rules_config"]
