"""
tests/test_targets.py
Unit tests for core/targets.py and the shared validators.
Run: pytest tests/test_targets.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import socket

import pytest
from core.targets import expand_range, detect_local_range
from utils.validators import clamp_speed, is_decimal, parse_flag, parse_octets, validate_port


class TestExpandRange:

    def test_short_bound(self):
        assert expand_range("192.168.1.10-12") == [
            "192.168.1.10", "192.168.1.11", "192.168.1.12",
        ]

    def test_address_bound(self):
        assert expand_range("10.0.0.1-10.0.0.3") == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]

    def test_single_host(self):
        assert expand_range("10.0.0.5-5") == ["10.0.0.5"]

    def test_full_segment(self):
        hosts = expand_range("10.1.2.1-254")
        assert len(hosts) == 254
        assert hosts[0] == "10.1.2.1"
        assert hosts[-1] == "10.1.2.254"

    def test_whitespace_tolerated(self):
        assert expand_range(" 10.0.0.1 - 2 ") == ["10.0.0.1", "10.0.0.2"]

    @pytest.mark.parametrize("spec", [
        "",
        "10.0.0.1",                 # no dash
        "10.0.0.1-2-3",             # two dashes
        "10.0.0-5",                 # three octets
        "10.0.0.x-5",               # non-numeric octet
        "10.0.0.256-260",           # octet out of range
        "10.0.0.1-256",             # bound > 255
        "10.0.0.1-0",               # bound 0
        "10.0.0.10-5",              # bound < base
        "10.0.0.1-10.0.1.5",        # bound in another /24
        "10.0.0.1-abc",
        "١٠.0.0.1-3",               # Arabic-Indic digits in base
        "010.000.0.1-2",            # zero-padded octets
        "10.0.0.1-٣",               # Arabic-Indic digit in bound
        "10.0.0.1-10.0.0.03",       # zero-padded bound address
    ])
    def test_invalid_yields_empty(self, spec):
        assert expand_range(spec) == []

    def test_non_string_yields_empty(self):
        assert expand_range(None) == []


class TestDetectLocalRange:

    def test_formats_primary_address(self, monkeypatch):
        class FakeSock:
            def connect(self, addr): pass
            def getsockname(self): return ("192.168.7.42", 50000)
            def close(self): pass

        monkeypatch.setattr(socket, "socket", lambda *a, **k: FakeSock())
        assert detect_local_range() == "192.168.7.1-254"

    def test_no_route_returns_none(self, monkeypatch):
        class DeadSock:
            def connect(self, addr): raise OSError("Network is unreachable")
            def close(self): pass

        monkeypatch.setattr(socket, "socket", lambda *a, **k: DeadSock())
        assert detect_local_range() is None


class TestValidators:

    def test_port_bounds(self):
        assert validate_port(1)[0] and validate_port(65535)[0]
        assert not validate_port(0)[0]
        assert not validate_port(65536)[0]

    def test_port_rejects_bool_and_str(self):
        assert not validate_port(True)[0]
        assert not validate_port("80")[0]

    def test_parse_octets(self):
        assert parse_octets("10.0.0.1") == [10, 0, 0, 1]
        assert parse_octets("10.0.0") is None
        assert parse_octets("10.0.0.300") is None
        assert parse_octets("10.0.0.-1") is None

    @pytest.mark.parametrize("raw", ["010.0.0.1", "١٠.0.0.1", "10.0.0.1 x", None])
    def test_parse_octets_rejects_loose_forms(self, raw):
        assert parse_octets(raw) is None

    @pytest.mark.parametrize("token,expected", [
        ("42", True), ("", False), ("٤٢", False), ("4a", False), ("-1", False),
    ])
    def test_is_decimal(self, token, expected):
        assert is_decimal(token) is expected

    @pytest.mark.parametrize("raw,expected", [
        (True, True), (False, False), ("true", True), ("Yes", True), ("on", True),
        ("false", False), ("0", False), ("off", False), ("", False), (1, True), (0, False),
    ])
    def test_parse_flag(self, raw, expected):
        assert parse_flag(raw) is expected

    @pytest.mark.parametrize("raw,expected", [
        (3, 3), (0, 1), (9, 5), ("4", 4), ("fast", 1), (None, 1),
    ])
    def test_clamp_speed(self, raw, expected):
        assert clamp_speed(raw) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
