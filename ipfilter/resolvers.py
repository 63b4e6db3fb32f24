"""Client address resolvers.

A resolver receives the live request and returns the address string used
for matching, or None when no address can be determined. ``None`` always
leads to a denial.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from .matcher import is_allowed, parse_address


def remote_address(request: Any) -> Optional[str]:
    """Peer address of the connection."""
    client = getattr(request, "client", None)
    if client is None:
        return None
    return client.host


def forwarded_address(
    trusted_proxies: Iterable[str],
    header: str = "x-forwarded-for",
) -> Callable[[Any], Optional[str]]:
    """Build a resolver honouring a forwarding header from trusted proxies.

    The header is only consulted when the peer itself is a trusted proxy.
    Hops are walked right to left; trusted hops are skipped and the first
    untrusted one is the client. A malformed hop resolves to None.
    """
    trusted = list(trusted_proxies)

    def _resolve(request: Any) -> Optional[str]:
        peer = remote_address(request)
        if peer is None or not is_allowed(peer, trusted):
            return peer

        # A header repeated on several lines is one comma separated list
        values = request.headers.getlist(header)
        if not values:
            return peer

        hops = [hop.strip() for value in values for hop in value.split(",")]
        for hop in reversed(hops):
            if parse_address(hop) is None:
                return None
            if not is_allowed(hop, trusted):
                return hop
        # Every hop is a trusted proxy: use the leftmost one
        return hops[0]

    return _resolve


__all__ = ["forwarded_address", "remote_address"]
