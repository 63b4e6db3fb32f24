from types import SimpleNamespace

import pytest
from starlette.datastructures import Headers

from ipfilter.config import reset_config
from ipfilter.testmode import set_test_mode


@pytest.fixture(autouse=True)
def isolated_filter_state():
    reset_config()
    set_test_mode(False)
    yield
    reset_config()
    set_test_mode(False)


@pytest.fixture
def make_request():
    """Factory for minimal stand-ins of a starlette request."""
    return _fake_request


def _fake_request(host=None, headers=None, route=None):
    client = SimpleNamespace(host=host) if host is not None else None
    scope = {}
    if route is not None:
        scope["route"] = SimpleNamespace(name=route)
    return SimpleNamespace(
        client=client,
        headers=headers if isinstance(headers, Headers) else Headers(headers=dict(headers or {})),
        scope=scope,
        url=SimpleNamespace(path=f"/{route or ''}"),
    )
