"""Infer an alert level from a region colour.

Regions drawn before levels existed only carry a colour; its hue picks
the level: green → low, orange/yellow → medium, red → high.  Everything
else (blues, purples, greys, garbage) falls back to medium.
"""

from __future__ import annotations

import re

from bosun.core.types import AlertLevel

_RGB_RE = re.compile(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_HEX_DIGITS = frozenset("0123456789abcdef")

_NAMED_COLORS: dict[str, str] = {
    "green": "#008000",
    "lime": "#00ff00",
    "vert": "#008000",
    "red": "#ff0000",
    "darkred": "#8b0000",
    "rouge": "#ff0000",
    "orange": "#ffa500",
    "yellow": "#ffff00",
    "gold": "#ffd700",
    "blue": "#0000ff",
    "purple": "#800080",
    "magenta": "#ff00ff",
}


def _parse_hex(hex_part: str) -> tuple[int, int, int] | None:
    if not hex_part or any(c not in _HEX_DIGITS for c in hex_part):
        return None
    if len(hex_part) == 3:
        return tuple(int(c * 2, 16) for c in hex_part)  # type: ignore[return-value]
    if len(hex_part) in (6, 8):
        return (
            int(hex_part[0:2], 16),
            int(hex_part[2:4], 16),
            int(hex_part[4:6], 16),
        )
    return None


def parse_rgb(color: str | None) -> tuple[int, int, int] | None:
    """Parse hex, ``rgb()``/``rgba()`` or a known colour name to RGB."""
    if not color or not isinstance(color, str):
        return None
    normalized = color.strip().lower()
    normalized = _NAMED_COLORS.get(normalized, normalized)

    if normalized.startswith("#"):
        return _parse_hex(normalized[1:])

    match = _RGB_RE.match(normalized)
    if match:
        r, g, b = (min(int(v), 255) for v in match.groups())
        return r, g, b
    return None


def hue_of(rgb: tuple[int, int, int]) -> int | None:
    """Hue in degrees [0, 360); None for achromatic colours."""
    r, g, b = (v / 255.0 for v in rgb)
    high = max(r, g, b)
    low = min(r, g, b)
    delta = high - low
    if delta == 0:
        return None

    if high == r:
        hue = ((g - b) / delta) % 6
    elif high == g:
        hue = (b - r) / delta + 2
    else:
        hue = (r - g) / delta + 4

    degrees = round(hue * 60)
    if degrees < 0:
        degrees += 360
    return degrees % 360


def color_to_level(color: str | None) -> AlertLevel:
    """Map a colour string to an alert level; medium when undecidable."""
    rgb = parse_rgb(color)
    if rgb is None:
        return AlertLevel.MEDIUM
    hue = hue_of(rgb)
    if hue is None:
        return AlertLevel.MEDIUM

    if 90 <= hue <= 150:
        return AlertLevel.LOW
    if 20 <= hue < 90:
        return AlertLevel.MEDIUM
    if hue < 20 or hue >= 330:
        return AlertLevel.HIGH
    return AlertLevel.MEDIUM
