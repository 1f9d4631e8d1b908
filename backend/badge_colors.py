"""
badge_colors.py
---------------
Color tokens -> RGB for badges and icons.

Tokens come straight from query strings, so parsing never fails: six hex
digits (optionally prefixed with #) decode directly, anything else is looked
up in the named palette, and whatever is left over becomes white.

Also carries the WCAG luminance/contrast helpers used by the optional
auto-contrast text color.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional


HEX_RE = re.compile(r'^#?([0-9a-fA-F]{6})$')

# Minimum WCAG contrast ratio for normal text
AA_CONTRAST = 4.5


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def as_tuple(self):
        return (self.r, self.g, self.b)


# Named badge palette. Keys are lower-cased for lookup.
COLORS: Dict[str, Color] = {
    "black": Color(0, 0, 0),
    "white": Color(255, 255, 255),

    # Grays & neutrals
    "graylight": Color(245, 245, 247),
    "gray": Color(128, 128, 128),
    "graydark": Color(64, 64, 64),
    "slate": Color(112, 128, 144),
    "charcoal": Color(54, 69, 79),

    # Blues
    "blue": Color(0, 122, 255),
    "lightblue": Color(173, 216, 230),
    "skyblue": Color(135, 206, 235),
    "teal": Color(0, 150, 136),
    "cyan": Color(0, 188, 212),

    # Greens
    "green": Color(76, 175, 80),
    "mint": Color(152, 251, 152),
    "seafoam": Color(120, 219, 226),
    "olive": Color(128, 128, 0),
    "emerald": Color(80, 200, 120),

    # Yellows & oranges
    "yellow": Color(255, 235, 59),
    "amber": Color(255, 191, 0),
    "orange": Color(255, 152, 0),
    "peach": Color(255, 218, 185),
    "gold": Color(255, 215, 0),

    # Reds & pinks
    "red": Color(244, 67, 54),
    "coral": Color(255, 127, 80),
    "salmon": Color(250, 128, 114),
    "pink": Color(255, 192, 203),
    "rose": Color(255, 102, 102),

    # Purples
    "purple": Color(156, 39, 176),
    "lavender": Color(230, 230, 250),
    "lilac": Color(200, 162, 200),
    "violet": Color(148, 0, 211),
    "indigo": Color(75, 0, 130),

    # Soft tones
    "sand": Color(244, 236, 219),
    "beige": Color(245, 245, 220),
    "ivory": Color(255, 255, 240),
    "blush": Color(222, 93, 131),
    "sage": Color(188, 184, 138),
    "dustyblue": Color(96, 147, 172),
    "terracotta": Color(204, 78, 92),
}

WHITE = COLORS["white"]
BLACK = COLORS["black"]


def parse_color(token: Any) -> Color:
    """Resolve a hex or named color token. Unknown input falls back to white."""
    if not isinstance(token, str):
        return WHITE
    candidate = token.strip()
    match = HEX_RE.fullmatch(candidate)
    if match:
        h = match.group(1)
        return Color(int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))
    return COLORS.get(candidate.lower(), WHITE)


def format_rgb(color: Color) -> str:
    return f"rgb({color.r}, {color.g}, {color.b})"


def _linear_channel(value: int) -> float:
    v = value / 255
    return v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(color: Color) -> float:
    return (
        0.2126 * _linear_channel(color.r)
        + 0.7152 * _linear_channel(color.g)
        + 0.0722 * _linear_channel(color.b)
    )


def contrast_ratio(a: Color, b: Color) -> float:
    la = relative_luminance(a)
    lb = relative_luminance(b)
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)


def best_text_color(background: Color) -> Color:
    """White or black, whichever reads better on the background."""
    if contrast_ratio(background, WHITE) >= contrast_ratio(background, BLACK):
        return WHITE
    return BLACK


def resolve_text_color(
    text_color: Optional[str],
    background: Color,
    auto_contrast: bool = False,
) -> Color:
    """
    Pick the text color for a badge.

    Without auto-contrast the caller's token is used as-is (white when absent).
    With auto-contrast a supplied color is kept only if it reaches the AA ratio
    against the background; otherwise white/black is chosen by contrast.
    """
    if not auto_contrast:
        return parse_color(text_color) if text_color else WHITE
    if text_color and text_color.strip().lower() != "auto":
        preferred = parse_color(text_color)
        if contrast_ratio(preferred, background) >= AA_CONTRAST:
            return preferred
    return best_text_color(background)
