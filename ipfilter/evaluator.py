"""Per-request access decisions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .config import FilterConfig, get_config
from .log import log_denial
from .matcher import is_allowed
from .registry import Restriction
from .testmode import is_test_mode

log = logging.getLogger(__name__)


class Decision(Enum):
    PERMIT = "permit"
    DENY = "deny"


@dataclass(slots=True)
class Evaluation:
    decision: Decision
    client_ip: Optional[str] = None
    # Whatever the denial action returned, usually a response
    denial_result: Any = None

    @property
    def permitted(self) -> bool:
        return self.decision is Decision.PERMIT


class AccessEvaluator:
    """Decides whether a request may reach a restricted route.

    Resolver, allow-list factory and denial action exceptions are not
    caught; they belong to the host application.
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self._config = config

    @property
    def config(self) -> FilterConfig:
        if self._config is not None:
            return self._config
        return get_config()

    def evaluate(
        self,
        request: Any,
        restriction: Optional[Restriction],
        *,
        owner: str,
        route: str,
    ) -> Decision:
        return self.check(request, restriction, owner=owner, route=route).decision

    def check(
        self,
        request: Any,
        restriction: Optional[Restriction],
        *,
        owner: str,
        route: str,
    ) -> Evaluation:
        if is_test_mode() or restriction is None:
            return Evaluation(decision=Decision.PERMIT)

        config = self.config
        client_ip = config.address_resolver(request)

        allowed = any(
            is_allowed(client_ip, patterns)
            for patterns in restriction.allow_list.groups(request)
        )
        if allowed:
            return Evaluation(decision=Decision.PERMIT, client_ip=client_ip)

        log.debug("Denied %s on %s#%s", client_ip, owner, route)
        log_denial(config, client_ip, owner=owner, route=route)
        action = restriction.on_denied or config.on_denied
        result = action(request)
        return Evaluation(decision=Decision.DENY, client_ip=client_ip, denial_result=result)


__all__ = ["AccessEvaluator", "Decision", "Evaluation"]
