"""
tests/test_port_parser.py
Unit tests for core/port_parser.py — every edge case.
Run: pytest tests/test_port_parser.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from core.port_parser import PortParser, parse_ports
from utils.constants import PORT_PRESETS


@pytest.fixture
def parser():
    return PortParser()


# ── Single port ────────────────────────────────────────────────────────────────

class TestSinglePort:
    def test_min_port(self, parser):              assert parser.parse("1") == [1]
    def test_max_port(self, parser):              assert parser.parse("65535") == [65535]
    def test_common_http(self, parser):           assert parser.parse("80") == [80]
    def test_surrounding_spaces(self, parser):    assert parser.parse("  443 ") == [443]

    def test_zero_dropped(self, parser):          assert parser.parse("0") == []
    def test_above_max_dropped(self, parser):     assert parser.parse("65536") == []
    def test_negative_dropped(self, parser):      assert parser.parse("-80") == []
    def test_float_dropped(self, parser):         assert parser.parse("80.5") == []
    def test_alpha_dropped(self, parser):         assert parser.parse("http") == []


# ── Multiple ports ────────────────────────────────────────────────────────────

class TestMultiplePorts:
    def test_two_ports(self, parser):
        assert parser.parse("80,443") == [80, 443]

    def test_input_order_kept(self, parser):
        assert parser.parse("443,22,80") == [443, 22, 80]

    def test_duplicates_collapse_to_first(self, parser):
        assert parser.parse("80,22,80,443,22") == [80, 22, 443]

    def test_spaces_around_tokens(self, parser):
        assert parser.parse("443, 22 ,80") == [443, 22, 80]

    def test_invalid_tokens_dropped_silently(self, parser):
        assert parser.parse("22,abc,80000,-1,80") == [22, 80]

    def test_empty_tokens_ignored(self, parser):
        assert parser.parse("22,,80,") == [22, 80]

    def test_ranges_not_expanded(self, parser):
        assert parser.parse("1-100") == []
        assert parser.parse("22,1-100,80") == [22, 80]


# ── Presets ───────────────────────────────────────────────────────────────────

class TestPresets:
    @pytest.mark.parametrize("name", sorted(PORT_PRESETS))
    def test_every_preset_expands(self, parser, name):
        assert parser.parse(name) == parse_ports(PORT_PRESETS[name])

    def test_preset_case_insensitive(self, parser):
        assert parser.parse("WEB") == parser.parse("web")

    def test_custom_presets(self):
        p = PortParser(presets={"mine": "8080,8443"})
        assert p.parse("mine") == [8080, 8443]
        assert p.parse("web") == []

    def test_presets_property_is_copy(self, parser):
        parser.presets["web"] = "1"
        assert parser.parse("web") != [1]


# ── Empty / garbage ───────────────────────────────────────────────────────────

class TestEmptyInput:
    def test_empty_string(self, parser):          assert parser.parse("") == []
    def test_only_commas(self, parser):           assert parser.parse(",,,") == []
    def test_none_input(self, parser):            assert parser.parse(None) == []
    def test_int_input(self, parser):             assert parser.parse(80) == []


# ── validate() ────────────────────────────────────────────────────────────────

class TestValidate:
    def test_valid(self, parser):
        ok, msg = parser.validate("22,80")
        assert ok and msg == ""

    def test_empty(self, parser):
        ok, msg = parser.validate("   ")
        assert not ok
        assert "empty" in msg

    def test_nothing_valid(self, parser):
        ok, msg = parser.validate("abc,0")
        assert not ok
        assert "No valid ports" in msg


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
