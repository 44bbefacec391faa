"""Tests for bosun/audio/colors.py: colour parsing and level inference."""

from __future__ import annotations

import pytest

from bosun.audio.colors import color_to_level, hue_of, parse_rgb
from bosun.core.types import AlertLevel


class TestColorToLevel:
    @pytest.mark.parametrize(
        ("color", "level"),
        [
            ("#00ff00", AlertLevel.LOW),
            ("#ff0000", AlertLevel.HIGH),
            ("#ffa500", AlertLevel.MEDIUM),
            ("", AlertLevel.MEDIUM),
            (None, AlertLevel.MEDIUM),
            ("#0f0", AlertLevel.LOW),
            ("#00ff0080", AlertLevel.LOW),
            ("rgb(255, 0, 0)", AlertLevel.HIGH),
            ("rgba(0,128,0,0.5)", AlertLevel.LOW),
            ("yellow", AlertLevel.MEDIUM),
            ("Green", AlertLevel.LOW),
            ("red", AlertLevel.HIGH),
            ("#ff0080", AlertLevel.HIGH),
            ("blue", AlertLevel.MEDIUM),
            ("purple", AlertLevel.MEDIUM),
            ("#808080", AlertLevel.MEDIUM),
            ("not-a-colour", AlertLevel.MEDIUM),
            ("#12", AlertLevel.MEDIUM),
            ("#gggggg", AlertLevel.MEDIUM),
        ],
    )
    def test_levels(self, color: str | None, level: AlertLevel) -> None:
        assert color_to_level(color) == level


class TestParseRgb:
    def test_hex_forms(self) -> None:
        assert parse_rgb("#abc") == (0xAA, 0xBB, 0xCC)
        assert parse_rgb("#112233") == (0x11, 0x22, 0x33)
        assert parse_rgb("#112233ff") == (0x11, 0x22, 0x33)

    def test_rgb_components_clamped(self) -> None:
        assert parse_rgb("rgb(300, 0, 10)") == (255, 0, 10)

    def test_named(self) -> None:
        assert parse_rgb(" Orange ") == (0xFF, 0xA5, 0x00)

    def test_garbage(self) -> None:
        assert parse_rgb("hsl(120, 100%, 50%)") is None


class TestHue:
    def test_primaries(self) -> None:
        assert hue_of((255, 0, 0)) == 0
        assert hue_of((0, 255, 0)) == 120
        assert hue_of((0, 0, 255)) == 240

    def test_achromatic(self) -> None:
        assert hue_of((0, 0, 0)) is None
        assert hue_of((200, 200, 200)) is None
