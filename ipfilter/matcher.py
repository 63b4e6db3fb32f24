"""Address and CIDR matching."""
from __future__ import annotations

import ipaddress
import logging
from typing import Optional, Sequence, Union

log = logging.getLogger(__name__)

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_address(value: Optional[str]) -> Optional[Address]:
    """Parse a textual IPv4 or IPv6 address, returning None when invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def _matches(address: Address, pattern: str) -> bool:
    if "/" in pattern:
        try:
            network = ipaddress.ip_network(pattern, strict=False)
        except ValueError:
            log.debug("Skipping malformed CIDR pattern %r", pattern)
            return False
        if network.version != address.version:
            return False
        return address in network

    candidate = parse_address(pattern)
    if candidate is None:
        log.debug("Skipping malformed address pattern %r", pattern)
        return False
    return candidate == address


def is_allowed(client_ip: Optional[str], allowed_patterns: Sequence[str]) -> bool:
    """Return True if ``client_ip`` matches any of ``allowed_patterns``.

    Patterns are bare addresses (exact match) or CIDR blocks (prefix match).
    Malformed patterns are skipped, a malformed or missing client address
    never matches.
    """
    if not client_ip or not allowed_patterns:
        return False

    address = parse_address(client_ip)
    if address is None:
        return False

    for pattern in allowed_patterns:
        if not isinstance(pattern, str):
            continue
        if _matches(address, pattern):
            return True
    return False


__all__ = ["Address", "is_allowed", "parse_address"]
