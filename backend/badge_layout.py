"""
badge_layout.py
---------------
Badge geometry. Text width is estimated server-side from a per-glyph table
(Verdana, 11px, weight 600) because badge consumers such as GitHub's camo
proxy never run measurement scripts.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, Optional

from icons_common import ProcessedIcon

BADGE_HEIGHT = 32
PADDING = 12
ICON_GAP = 8
ICON_MAX_WIDTH = 32
ICON_MAX_HEIGHT = 20
ICON_MIN_HEIGHT = 12

FONT_SIZE = 11
LETTER_SPACING_EM = 0.1
SAFETY_FACTOR = 1.2
UPPERCASE_FACTOR = 1.1
DEFAULT_CHAR_WIDTH = 8.0

CHAR_WIDTHS: Dict[str, float] = {
    # narrow
    "i": 4, "l": 4, "j": 4.5, "t": 5, "f": 5.5, "r": 6,
    # medium
    "a": 7, "c": 7, "e": 7, "n": 7.5, "o": 7.5, "s": 7, "u": 7.5, "v": 7, "x": 7, "z": 7,
    "b": 7.5, "d": 7.5, "g": 7.5, "h": 7.5, "k": 7.5, "p": 7.5, "q": 7.5, "y": 7,
    # wide
    "m": 11, "w": 11,
    # digits
    "0": 7.5, "1": 5, "2": 7.5, "3": 7.5, "4": 7.5, "5": 7.5, "6": 7.5, "7": 7.5, "8": 7.5, "9": 7.5,
    # punctuation
    " ": 4, ".": 4, ",": 4, ":": 4, ";": 4, "!": 4.5, "?": 7.5, "-": 5, "_": 7.5,
    "(": 5, ")": 5, "[": 5, "]": 5, "{": 5.5, "}": 5.5, "/": 5.5, "\\": 5.5, "|": 4,
    "+": 8, "=": 8, "<": 8, ">": 8, "@": 12, "#": 8.5, "$": 7.5, "%": 12, "^": 7,
    "&": 9.5, "*": 6, "~": 8, "`": 5, "'": 4, '"': 6,
}


@dataclass(frozen=True)
class BadgeLayout:
    width: int
    height: int
    padding: int
    icon_x: int
    icon_y: int
    icon_width: int
    icon_height: int
    text_x: int
    text_y: float
    text_width: int


def text_width(text: str, font_size: int = FONT_SIZE) -> int:
    """Approximate rendered width of text, letter spacing and safety margin included."""
    if not text:
        return 0
    total = 0.0
    for ch in text:
        base = CHAR_WIDTHS.get(ch.lower())
        if base is None:
            total += DEFAULT_CHAR_WIDTH
        elif ch.isupper():
            total += base * UPPERCASE_FACTOR
        else:
            total += base
    total += (len(text) - 1) * font_size * LETTER_SPACING_EM
    total *= SAFETY_FACTOR
    return math.ceil(total)


def icon_box(icon: Optional[ProcessedIcon]):
    """Clamp icon display size into the badge, keeping its aspect ratio."""
    if icon is None or icon.width <= 0 or icon.height <= 0:
        return 0, 0
    ratio = icon.width / icon.height
    width = min(icon.width, ICON_MAX_WIDTH)
    height = min(icon.height, ICON_MAX_HEIGHT)
    if width < icon.width:
        height = round(width / ratio)
    elif height < icon.height:
        width = round(height * ratio)
    if height < ICON_MIN_HEIGHT:
        height = ICON_MIN_HEIGHT
        width = round(height * ratio)
    return width, height


def calculate_layout(text: Optional[str], icon: Optional[ProcessedIcon]) -> BadgeLayout:
    icon_w, icon_h = icon_box(icon)
    gap = ICON_GAP if icon is not None and icon_w else 0

    measured = text_width(text) if text else 0
    # the gap only separates icon and text when both are shown
    spacing = gap if measured else 0
    total = PADDING + icon_w + spacing + measured + PADDING

    return BadgeLayout(
        width=total,
        height=BADGE_HEIGHT,
        padding=PADDING,
        icon_x=PADDING,
        icon_y=round((BADGE_HEIGHT - icon_h - 2) / 2),
        icon_width=icon_w,
        icon_height=icon_h,
        text_x=PADDING + icon_w + gap,
        text_y=BADGE_HEIGHT / 2,
        text_width=measured,
    )
