from __future__ import annotations

import logging

import pytest

from operator_repo.config import Settings, _as_bool
from operator_repo.infra.logging import resolve_level


@pytest.mark.parametrize("raw,expected", [("1", True), ("Yes", True), (" on ", True), ("0", False), ("", False)])
def test_as_bool(raw, expected):
    assert _as_bool(raw) is expected


def test_as_bool_default():
    assert _as_bool(None, default=True) is True


def test_settings_helpers():
    assert Settings(permissions_v2_url=" MOCK ").use_mock_permissions
    assert not Settings(permissions_v2_url="http://permv2:8080").use_mock_permissions
    assert Settings(debug=True).bind_host == "127.0.0.1"
    assert Settings(debug=False).bind_host == "0.0.0.0"


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("nonsense") == logging.INFO
    assert resolve_level(None) == logging.INFO
