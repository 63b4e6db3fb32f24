import pytest

from ipfilter.testmode import (
    disable_test_mode,
    enable_test_mode,
    is_test_mode,
    with_ip_filter,
    without_ip_filter,
)


def test_defaults_to_off():
    assert is_test_mode() is False


def test_enable_and_disable():
    enable_test_mode()
    assert is_test_mode() is True
    disable_test_mode()
    assert is_test_mode() is False


def test_without_ip_filter_restores_previous_value():
    with without_ip_filter():
        assert is_test_mode() is True
    assert is_test_mode() is False


def test_with_ip_filter_restores_previous_value():
    enable_test_mode()
    with with_ip_filter():
        assert is_test_mode() is False
    assert is_test_mode() is True


def test_restores_when_block_raises():
    with pytest.raises(ValueError):
        with without_ip_filter():
            raise ValueError("boom")
    assert is_test_mode() is False

    enable_test_mode()
    with pytest.raises(ValueError):
        with with_ip_filter():
            raise ValueError("boom")
    assert is_test_mode() is True


def test_nested_blocks():
    with without_ip_filter():
        with with_ip_filter():
            assert is_test_mode() is False
        assert is_test_mode() is True
    assert is_test_mode() is False
