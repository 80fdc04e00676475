"""Tests for typeright.ui.colors – color blending, constants and time formatting."""

from __future__ import annotations

import pytest

from typeright.ui.colors import HomeColors, accuracy_color, background_gradient, blend_hex, format_time


# ===========================================================================
# HomeColors – constants exist
# ===========================================================================

class TestHomeColors:
    @pytest.mark.parametrize(
        "name",
        ["BG_TOP", "PRIMARY", "CORRECT", "INCORRECT", "PENDING", "WPM", "TIME", "TEXT_PRIMARY"],
    )
    def test_is_hex(self, name):
        value = getattr(HomeColors, name)
        assert value.startswith("#")
        assert len(value) == 7

    def test_card_bg_is_rgba(self):
        assert HomeColors.CARD_BG.startswith("rgba(")


# ===========================================================================
# blend_hex
# ===========================================================================

class TestBlendHex:
    def test_t_zero_returns_a(self):
        assert blend_hex("#FF0000", "#0000FF", 0.0) == "#FF0000"

    def test_t_one_returns_b(self):
        assert blend_hex("#FF0000", "#0000FF", 1.0) == "#0000FF"

    def test_midpoint(self):
        result = blend_hex("#000000", "#FFFFFF", 0.5)
        assert 126 <= int(result[1:3], 16) <= 128

    def test_clamps_t(self):
        assert blend_hex("#000000", "#FFFFFF", 2.0) == "#FFFFFF"
        assert blend_hex("#000000", "#FFFFFF", -1.0) == "#000000"

    def test_invalid_input_returns_a(self):
        assert blend_hex("red", "#FFFFFF", 0.5) == "red"

    def test_bad_hex_digits_returns_a(self):
        assert blend_hex("#GGGGGG", "#FFFFFF", 0.5) == "#GGGGGG"


# ===========================================================================
# accuracy_color / format_time
# ===========================================================================

class TestAccuracyColor:
    def test_full_accuracy_is_correct_color(self):
        assert accuracy_color(100) == HomeColors.CORRECT.upper()

    def test_zero_accuracy_is_incorrect_color(self):
        assert accuracy_color(0) == HomeColors.INCORRECT.upper()


class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "0:00"), (5, "0:05"), (60, "1:00"), (125, "2:05"), (-3, "0:00")],
    )
    def test_minutes_and_seconds(self, seconds, expected):
        assert format_time(seconds) == expected


class TestBackgroundGradient:
    def test_runs_from_top_to_bottom_color(self):
        gradient = background_gradient()
        assert gradient.startswith("qlineargradient(")
        assert gradient.index(HomeColors.BG_TOP) < gradient.index(HomeColors.BG_BOTTOM)
