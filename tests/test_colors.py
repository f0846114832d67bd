"""
Colour utility tests: hex normalization, RGB distance and blending.
"""

import pytest

from pmsfinder.data.colors import (
    NEUTRAL_FALLBACK_HEX,
    blend,
    hex_to_rgb,
    is_ui_hex,
    normalize_hex,
    rgb_dict_to_hex,
    rgb_distance,
    rgb_to_hex,
)


class TestNormalizeHex:

    @pytest.mark.parametrize("raw, expected", [
        ("#ff0000", "#FF0000"),
        ("ff0000", "#FF0000"),
        ("  #00aBcD  ", "#00ABCD"),
        ("123456", "#123456"),
    ])
    def test_valid_values(self, raw, expected):
        assert normalize_hex(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "#FFF", "FFF", "GGGGGG", "#FF00001", "##FF0000", "#FF 000"])
    def test_invalid_values(self, raw):
        assert normalize_hex(raw) is None

    @pytest.mark.parametrize("raw", ["#ff0000", "abcdef", " 123ABC"])
    def test_idempotent(self, raw):
        once = normalize_hex(raw)
        assert normalize_hex(once) == once

    def test_ui_check_is_looser(self):
        assert is_ui_hex("#FFF")
        assert is_ui_hex("FFFFFF")
        assert normalize_hex("#FFF") is None


class TestDistance:

    def test_zero_for_same_colour(self):
        for rgb in [(0, 0, 0), (12, 200, 77), (255, 255, 255)]:
            assert rgb_distance(rgb, rgb) == 0

    def test_symmetric(self):
        a, b = (10, 20, 30), (200, 100, 0)
        assert rgb_distance(a, b) == rgb_distance(b, a)

    def test_black_white(self):
        assert round(rgb_distance((0, 0, 0), (255, 255, 255)), 2) == 441.67


class TestConversions:

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#0080FF") == (0, 128, 255)

    def test_rgb_to_hex_rounds_half_up(self):
        assert rgb_to_hex((126.5, 0.4, 254.6)) == "#7F00FF"

    def test_rgb_to_hex_clamps(self):
        assert rgb_to_hex((-5, 300, 10)) == "#00FF0A"

    def test_rgb_dict_to_hex(self):
        assert rgb_dict_to_hex({"r": 255, "g": 128, "b": 0}) == "#FF8000"
        assert rgb_dict_to_hex({"r": 255, "g": 128}) is None


class TestBlend:

    def test_equal_red_blue(self):
        components = [{"hex": "#FF0000", "percentage": 50}, {"hex": "#0000FF", "percentage": 50}]
        assert blend(components) == "#800080"

    def test_empty_returns_fallback(self):
        assert blend([]) == NEUTRAL_FALLBACK_HEX == "#888888"

    def test_zero_weight_returns_fallback(self):
        assert blend([{"hex": "#FF0000", "percentage": 0}]) == "#888888"

    def test_components_without_hex_are_ignored(self):
        components = [
            {"hex": "FF0000", "percentage": 30},
            {"hex": "", "percentage": 50},
            {"hex": None, "percentage": 10},
            {"hex": "#FFF", "percentage": 10},
        ]
        assert blend(components) == "#FF0000"

    def test_accepts_objects(self):
        class Part:
            def __init__(self, hex, percentage):
                self.hex = hex
                self.percentage = percentage

        assert blend([Part("#FFFFFF", 25), Part("#000000", 75)]) == "#404040"
