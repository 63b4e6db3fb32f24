"""FastAPI wiring.

An ``IpFilter`` is used as a dependency on an app, router or single route::

    admin = IpFilter("admin")
    admin.filter_ip("127.0.0.1", "10.0.0.0/8", except_=["health"])
    router = APIRouter(dependencies=[Depends(admin)])

Rules are keyed by route name, which FastAPI derives from the endpoint
function name unless ``name=`` is given. ``IpFilter.allow`` attaches a rule
to the endpoint function itself, so it holds under any route name.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, AsyncIterator, Callable, Iterable, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from starlette.responses import Response

from .config import FilterConfig, configure, get_config
from .evaluator import AccessEvaluator, Decision, Evaluation
from .log import DENIAL_LOGGER
from .registry import AllowEntry, AllowList, DenialAction, Restriction, RestrictionRegistry

log = logging.getLogger(__name__)


class AccessDenied(HTTPException):
    """Carries the denial response out of the dependency."""

    def __init__(self, response: Response):
        try:
            detail = HTTPStatus(response.status_code).phrase
        except ValueError:
            detail = "Access denied"
        super().__init__(status_code=response.status_code, detail=detail)
        self.response = response


async def access_denied_handler(request: Request, exc: AccessDenied) -> Response:
    return exc.response


def route_name(request: Request) -> str:
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    if name:
        return name
    endpoint = request.scope.get("endpoint")
    if endpoint is not None:
        return getattr(endpoint, "__name__", str(endpoint))
    return request.url.path


class IpFilter:
    """Restrictions for one group of routes, usable as a FastAPI dependency."""

    def __init__(
        self,
        name: str,
        *,
        parent: Optional[IpFilter] = None,
        config: Optional[FilterConfig] = None,
    ):
        self.name = name
        self.registry = RestrictionRegistry(name, parent=parent.registry if parent else None)
        if config is None and parent is not None:
            config = parent._config
        self._config = config
        self.evaluator = AccessEvaluator(config)

    def filter_ip(
        self,
        *allowed_ips: AllowEntry,
        on_denied: Optional[DenialAction] = None,
        only: Optional[Union[str, Iterable[str]]] = None,
        except_: Optional[Union[str, Iterable[str]]] = None,
    ) -> Restriction:
        """Restrict every route of this filter, optionally narrowed."""
        return self.registry.register_all(
            AllowList.of(*allowed_ips), on_denied, only=only, except_=except_
        )

    def restrict(
        self,
        routes: Union[str, Iterable[str]],
        *allowed_ips: AllowEntry,
        on_denied: Optional[DenialAction] = None,
    ) -> Restriction:
        """Restrict the named routes; takes precedence over ``filter_ip``."""
        return self.registry.register_routes(routes, AllowList.of(*allowed_ips), on_denied)

    def allow(
        self, *allowed_ips: AllowEntry, on_denied: Optional[DenialAction] = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator restricting one endpoint function, whatever its route name.

        Must sit below the router decorator so it sees the bare endpoint.
        """

        def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
            self.registry.register_endpoint(endpoint, AllowList.of(*allowed_ips), on_denied)
            return endpoint

        return decorator

    def child(self, name: str) -> IpFilter:
        return IpFilter(name, parent=self)

    def check(self, request: Request) -> Evaluation:
        route = route_name(request)
        restriction = self.registry.lookup(route, request.scope.get("endpoint"))
        return self.evaluator.check(request, restriction, owner=self.name, route=route)

    async def __call__(self, request: Request) -> None:
        evaluation = self.check(request)
        if evaluation.decision is Decision.PERMIT:
            return
        result = evaluation.denial_result
        if isinstance(result, Response):
            raise AccessDenied(result)
        # The denial action produced no response; never let the request through
        raise AccessDenied(Response(status_code=403))


def install(
    app: FastAPI,
    *,
    config: Optional[FilterConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Register the denial handler and wire a default logger at startup.

    The app's lifespan is wrapped, so this works with both ``lifespan=``
    apps and startup event handlers.
    """
    app.add_exception_handler(AccessDenied, access_denied_handler)

    def _wire_denial_logger() -> None:
        target = config if config is not None else get_config()
        if target.logger is not None:
            return
        sink = logger or logging.getLogger(DENIAL_LOGGER)
        if config is not None:
            config.logger = sink
        else:
            configure(logger=sink)
        log.debug("Denial logging wired to %s", sink.name)

    lifespan_context = app.router.lifespan_context

    @asynccontextmanager
    async def _lifespan(asgi_app: Any) -> AsyncIterator[Any]:
        _wire_denial_logger()
        async with lifespan_context(asgi_app) as state:
            yield state

    app.router.lifespan_context = _lifespan


__all__ = ["AccessDenied", "IpFilter", "access_denied_handler", "install", "route_name"]
