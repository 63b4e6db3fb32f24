"""Route restrictions keyed by route name."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

AllowListFactory = Callable[[Any], Iterable[str]]
DenialAction = Callable[[Any], Any]
AllowEntry = Union[str, AllowListFactory]

ALL_ROUTES = "*"


@dataclass(frozen=True, slots=True)
class AllowList:
    """Ordered allow-list entries.

    Each entry is either a literal pattern or a factory called with the live
    request. Factories are evaluated on every request and never cached.
    """

    entries: Tuple[AllowEntry, ...] = ()

    @classmethod
    def static(cls, *patterns: str) -> AllowList:
        return cls(entries=tuple(patterns))

    @classmethod
    def dynamic(cls, factory: AllowListFactory) -> AllowList:
        if not callable(factory):
            raise TypeError("dynamic allow-list requires a callable")
        return cls(entries=(factory,))

    @classmethod
    def of(cls, *entries: AllowEntry) -> AllowList:
        for entry in entries:
            if not isinstance(entry, str) and not callable(entry):
                raise TypeError(f"unsupported allow-list entry: {entry!r}")
        return cls(entries=tuple(entries))

    @property
    def is_dynamic(self) -> bool:
        return any(callable(entry) for entry in self.entries)

    def groups(self, request: Any) -> Iterator[List[str]]:
        """Yield pattern groups lazily; a factory runs only when reached."""
        literals: List[str] = []
        for entry in self.entries:
            if isinstance(entry, str):
                literals.append(entry)
                continue
            if literals:
                yield literals
                literals = []
            produced = entry(request)
            if isinstance(produced, str):
                yield [produced]
            else:
                yield list(produced or ())
        if literals:
            yield literals

    def resolve(self, request: Any = None) -> List[str]:
        patterns: List[str] = []
        for group in self.groups(request):
            patterns.extend(group)
        return patterns


@dataclass(frozen=True, slots=True)
class Restriction:
    allow_list: AllowList
    on_denied: Optional[DenialAction] = None


@dataclass(frozen=True, slots=True)
class CatchAll:
    """Restriction for every route, narrowed by ``only``/``except_`` at lookup."""

    restriction: Restriction
    only: Optional[FrozenSet[str]] = None
    except_: Optional[FrozenSet[str]] = None

    def applies_to(self, route: str) -> bool:
        if self.only is not None and route not in self.only:
            return False
        # Exclusion is checked after inclusion, so a route named in both is excluded
        if self.except_ is not None and route in self.except_:
            return False
        return True


def _route_set(routes: Optional[Union[str, Iterable[str]]]) -> Optional[FrozenSet[str]]:
    if routes is None:
        return None
    if isinstance(routes, str):
        return frozenset([routes])
    return frozenset(str(route) for route in routes)


class RestrictionRegistry:
    """Restrictions owned by one handler group.

    A registry may start from a copy of a parent's entries. The copy is taken
    at construction time; later registrations on either side stay local.
    Registration happens at startup and is not synchronised.
    """

    def __init__(self, owner: str, parent: Optional[RestrictionRegistry] = None):
        self.owner = owner
        self._routes: Dict[str, Restriction] = {}
        self._catch_all: Optional[CatchAll] = None
        # Rules attached to an endpoint callable, independent of the route name
        self._endpoints: Dict[Callable[..., Any], Restriction] = {}
        if parent is not None:
            self._routes = dict(parent._routes)
            self._endpoints = dict(parent._endpoints)
            self._catch_all = parent._catch_all

    @property
    def catch_all(self) -> Optional[CatchAll]:
        return self._catch_all

    def routes(self) -> List[str]:
        return sorted(self._routes)

    def register(
        self,
        route_key: str,
        allow_list: AllowList,
        on_denied: Optional[DenialAction] = None,
    ) -> Restriction:
        restriction = Restriction(allow_list=allow_list, on_denied=on_denied)
        if route_key == ALL_ROUTES:
            self._catch_all = CatchAll(restriction=restriction)
        else:
            self._routes[route_key] = restriction
        return restriction

    def register_routes(
        self,
        route_keys: Iterable[str],
        allow_list: AllowList,
        on_denied: Optional[DenialAction] = None,
    ) -> Restriction:
        keys = [route_keys] if isinstance(route_keys, str) else list(route_keys)
        restriction = Restriction(allow_list=allow_list, on_denied=on_denied)
        for key in keys:
            self._routes[key] = restriction
        return restriction

    def register_endpoint(
        self,
        endpoint: Callable[..., Any],
        allow_list: AllowList,
        on_denied: Optional[DenialAction] = None,
    ) -> Restriction:
        restriction = Restriction(allow_list=allow_list, on_denied=on_denied)
        self._endpoints[endpoint] = restriction
        return restriction

    def register_all(
        self,
        allow_list: AllowList,
        on_denied: Optional[DenialAction] = None,
        *,
        only: Optional[Union[str, Iterable[str]]] = None,
        except_: Optional[Union[str, Iterable[str]]] = None,
    ) -> Restriction:
        restriction = Restriction(allow_list=allow_list, on_denied=on_denied)
        self._catch_all = CatchAll(
            restriction=restriction,
            only=_route_set(only),
            except_=_route_set(except_),
        )
        return restriction

    def lookup(
        self, route_key: str, endpoint: Optional[Callable[..., Any]] = None
    ) -> Optional[Restriction]:
        """Endpoint rule first, then the named route, then the catch-all."""
        if endpoint is not None:
            restriction = self._endpoints.get(endpoint)
            if restriction is not None:
                return restriction
        restriction = self._routes.get(route_key)
        if restriction is not None:
            return restriction
        if self._catch_all is not None and self._catch_all.applies_to(route_key):
            return self._catch_all.restriction
        return None

    def copy(self, owner: str) -> RestrictionRegistry:
        return RestrictionRegistry(owner, parent=self)


__all__ = [
    "ALL_ROUTES",
    "AllowEntry",
    "AllowList",
    "AllowListFactory",
    "CatchAll",
    "DenialAction",
    "Restriction",
    "RestrictionRegistry",
]
