import pytest
from starlette.datastructures import Headers

from ipfilter.resolvers import forwarded_address, remote_address


def test_remote_address(make_request):
    assert remote_address(make_request("10.0.0.1")) == "10.0.0.1"
    assert remote_address(make_request()) is None


def test_forwarded_header_ignored_from_untrusted_peer(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    request = make_request("203.0.113.5", headers={"x-forwarded-for": "127.0.0.1"})
    assert resolve(request) == "203.0.113.5"


def test_forwarded_header_from_trusted_peer(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    request = make_request("10.0.0.2", headers={"x-forwarded-for": "198.51.100.7, 10.0.0.3"})
    assert resolve(request) == "198.51.100.7"


def test_spoofed_leftmost_entry_is_not_trusted(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    request = make_request("10.0.0.2", headers={"x-forwarded-for": "127.0.0.1, 198.51.100.7"})
    assert resolve(request) == "198.51.100.7"


def test_trusted_peer_without_header(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    assert resolve(make_request("10.0.0.2")) == "10.0.0.2"


def test_repeated_forwarded_header_lines_are_joined(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    headers = Headers(
        raw=[(b"x-forwarded-for", b"198.51.100.7"), (b"x-forwarded-for", b"10.0.0.3")]
    )
    assert resolve(make_request("10.0.0.2", headers=headers)) == "198.51.100.7"

    spoofed = Headers(
        raw=[(b"x-forwarded-for", b"127.0.0.1"), (b"x-forwarded-for", b"203.0.113.9, 10.0.0.3")]
    )
    assert resolve(make_request("10.0.0.2", headers=spoofed)) == "203.0.113.9"


def test_all_hops_trusted_uses_leftmost(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    request = make_request("10.0.0.2", headers={"x-forwarded-for": "10.1.1.1, 10.0.0.3"})
    assert resolve(request) == "10.1.1.1"


@pytest.mark.parametrize("header", ["garbage, 10.0.0.3", "198.51.100.7, , 10.0.0.3"])
def test_malformed_hop_fails_closed(make_request, header):
    resolve = forwarded_address(["10.0.0.0/8"])
    request = make_request("10.0.0.2", headers={"x-forwarded-for": header})
    assert resolve(request) is None


def test_custom_header(make_request):
    resolve = forwarded_address(["::1"], header="x-real-ip")
    request = make_request("::1", headers={"x-real-ip": "2001:db8::5"})
    assert resolve(request) == "2001:db8::5"


def test_missing_peer(make_request):
    resolve = forwarded_address(["10.0.0.0/8"])
    assert resolve(make_request(headers={"x-forwarded-for": "198.51.100.7"})) is None
