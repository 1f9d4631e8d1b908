"""
badge_render.py
---------------
Final badge SVG: background rect, optional icon <image>, optional <text>.
"""

from __future__ import annotations
from typing import Optional
from xml.sax.saxutils import escape, quoteattr

from pydantic import BaseModel

from badge_colors import format_rgb, parse_color, resolve_text_color
from badge_layout import FONT_SIZE, LETTER_SPACING_EM, calculate_layout
from icons_common import SVG_NS, ProcessedIcon

FONT_FAMILY = "Verdana, system-ui, sans-serif"
FONT_WEIGHT = 600
DEFAULT_EDGES = "rounded"
ROUNDED_RADIUS = 8


class BadgeSpec(BaseModel):
    text: Optional[str] = None
    bg_color: str = "white"
    icon: Optional[str] = None
    icon_color: Optional[str] = None
    text_color: str = "white"
    edges: str = DEFAULT_EDGES


def corner_radius(edges: Optional[str], height: int) -> float:
    style = (edges or DEFAULT_EDGES).strip().lower()
    if style in ("square", "sharp", "squared"):
        return 0
    if style == "pill":
        return height / 2
    # rounded, round and anything unrecognised
    return ROUNDED_RADIUS


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def render_badge(
    text: Optional[str],
    bg_color: str,
    icon: Optional[ProcessedIcon],
    text_color: Optional[str] = None,
    edges: Optional[str] = DEFAULT_EDGES,
    auto_contrast: bool = False,
) -> str:
    background = parse_color(bg_color)
    foreground = resolve_text_color(text_color, background, auto_contrast)
    layout = calculate_layout(text, icon)
    radius = _num(corner_radius(edges, layout.height))

    parts = [
        f'<svg width="{layout.width}" height="{layout.height}" '
        f'viewBox="0 0 {layout.width} {layout.height}" xmlns="{SVG_NS}" '
        f'shape-rendering="geometricPrecision" text-rendering="optimizeLegibility" '
        f'image-rendering="optimizeQuality" color-rendering="optimizeQuality">',
        f'<rect width="{layout.width}" height="{layout.height}" '
        f'fill="{format_rgb(background)}" rx="{radius}" ry="{radius}"/>',
    ]

    if icon is not None:
        parts.append(
            f'<image href={quoteattr(icon.data_uri)} x="{layout.icon_x}" y="{layout.icon_y}" '
            f'width="{layout.icon_width}" height="{layout.icon_height}" '
            f'style="image-rendering: optimizeQuality;"/>'
        )

    if text is not None:
        parts.append(
            f'<text x="{layout.text_x}" y="{_num(layout.text_y)}" text-anchor="start" '
            f'dominant-baseline="middle" fill="{format_rgb(foreground)}" '
            f'font-size="{FONT_SIZE}" font-weight="{FONT_WEIGHT}" font-family="{FONT_FAMILY}" '
            f'style="text-rendering: optimizeLegibility; letter-spacing: {LETTER_SPACING_EM}em;">{escape(text)}</text>'
        )

    parts.append("</svg>")
    return "".join(parts)


def render_spec(spec: BadgeSpec, icon: Optional[ProcessedIcon], auto_contrast: bool = False) -> str:
    return render_badge(spec.text, spec.bg_color, icon, spec.text_color, spec.edges, auto_contrast)
