"""Process-wide bypass switch for test harnesses.

While test mode is on every filtered route is permitted without resolving
the client address. Prefer the context managers over the bare switches so
the previous state is restored even when the block fails.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

_enabled = False


def is_test_mode() -> bool:
    return _enabled


def set_test_mode(enabled: bool) -> None:
    global _enabled
    _enabled = bool(enabled)


def enable_test_mode() -> None:
    set_test_mode(True)


def disable_test_mode() -> None:
    set_test_mode(False)


@contextmanager
def _test_mode_as(enabled: bool) -> Iterator[None]:
    previous = is_test_mode()
    set_test_mode(enabled)
    try:
        yield
    finally:
        set_test_mode(previous)


def without_ip_filter():
    """Bypass all filtering inside the ``with`` block."""
    return _test_mode_as(True)


def with_ip_filter():
    """Force filtering on inside the ``with`` block."""
    return _test_mode_as(False)


__all__ = [
    "disable_test_mode",
    "enable_test_mode",
    "is_test_mode",
    "set_test_mode",
    "with_ip_filter",
    "without_ip_filter",
]
