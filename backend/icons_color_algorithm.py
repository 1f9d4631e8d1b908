"""
icons_color_algorithm.py
------------------------
Recolor icon SVG markup to a single target color.

Two strategies:

- Markup wrapping a bitmap (<image>): the pixels cannot be rewritten, so a
  color-matrix filter tinting every opaque pixel to the target color is added
  to <defs> and applied to each <image>. This is a silhouette approximation,
  not a per-region recolor.
- Pure vector markup: fill/stroke attributes, inline style declarations and
  <style> rules are rewritten textually; shapes with no fill get one.

Paint values that carry meaning of their own are never touched:
none, transparent, currentColor, url(...) references and anything mentioning
a gradient. Breaking those silently ruins gradient icons and cut-outs.
currentColor is instead steered through the root `color` attribute.
"""

from __future__ import annotations
import re
from typing import Optional

from badge_colors import Color, format_rgb, parse_color

COLORIZE_FILTER_ID = "subtle-colorize"

PRESERVED_PAINT = {"none", "transparent", "currentcolor"}

SHAPE_TAGS = ("path", "circle", "rect", "ellipse", "polygon", "polyline")

PAINT_ATTR_RE = re.compile(r'(?<![\w:-])(fill|stroke)(\s*=\s*)(["\'])(.*?)\3', re.IGNORECASE | re.DOTALL)
STYLE_ATTR_RE = re.compile(r'(?<![\w:-])(style\s*=\s*)(["\'])(.*?)\2', re.IGNORECASE | re.DOTALL)
STYLE_BLOCK_RE = re.compile(r'(<style\b[^>]*>)(.*?)(</style\s*>)', re.IGNORECASE | re.DOTALL)
INLINE_PAINT_RE = re.compile(r'(?<![\w-])(fill|stroke)(\s*:\s*)([^;]+)', re.IGNORECASE)
CSS_PAINT_RE = re.compile(r'(?<![\w-])(fill|stroke|color|stop-color)(\s*:\s*)([^;}]+)', re.IGNORECASE)
ROOT_TAG_RE = re.compile(r'<svg\b[^>]*>', re.IGNORECASE)
SHAPE_TAG_RE = re.compile(r'<(%s)\b([^>]*?)(\s*/?)>' % "|".join(SHAPE_TAGS), re.IGNORECASE)
IMAGE_TAG_RE = re.compile(r'<image\b([^>]*?)(\s*/?)>', re.IGNORECASE)
HAS_FILL_RE = re.compile(r'(?<![\w:-])fill\s*=', re.IGNORECASE)
HAS_STYLE_FILL_RE = re.compile(r'(?<![\w-])fill\s*:', re.IGNORECASE)
FILTER_ATTR_RE = re.compile(r'(?<![\w:-])filter\s*=\s*(["\']).*?\1', re.IGNORECASE)
COLOR_ATTR_RE = re.compile(r'\scolor\s*=\s*(["\']).*?\1', re.IGNORECASE)
EXISTING_FILTER_RE = re.compile(
    r'<filter\b[^>]*\bid\s*=\s*["\']%s["\'][^>]*>.*?</filter\s*>' % COLORIZE_FILTER_ID,
    re.IGNORECASE | re.DOTALL,
)


def is_preserved_paint(value: str) -> bool:
    v = value.strip().lower()
    if v in PRESERVED_PAINT:
        return True
    return v.startswith("url(") or "gradient" in v


def colorize_filter(color: Color) -> str:
    """Filter that paints every pixel the target color and keeps its alpha."""
    r, g, b = (round(c / 255, 4) for c in color.as_tuple())
    return (
        f'<filter id="{COLORIZE_FILTER_ID}" color-interpolation-filters="sRGB">'
        f'<feColorMatrix type="matrix" values="0 0 0 0 {r} 0 0 0 0 {g} 0 0 0 0 {b} 0 0 0 1 0"/>'
        f'</filter>'
    )


def _apply_image_filter(svg: str, color: Color) -> str:
    svg = EXISTING_FILTER_RE.sub("", svg)
    filter_markup = colorize_filter(color)
    if re.search(r'<defs\s*/>', svg, re.IGNORECASE):
        svg = re.sub(r'<defs\s*/>', f'<defs>{filter_markup}</defs>', svg, count=1, flags=re.IGNORECASE)
    elif re.search(r'<defs\b[^>]*>', svg, re.IGNORECASE):
        svg = re.sub(r'(<defs\b[^>]*>)', lambda m: m.group(1) + filter_markup, svg, count=1, flags=re.IGNORECASE)
    else:
        svg = ROOT_TAG_RE.sub(lambda m: f'{m.group(0)}<defs>{filter_markup}</defs>', svg, count=1)

    def _image(match: re.Match) -> str:
        attrs, close = match.group(1), match.group(2)
        ref = f'filter="url(#{COLORIZE_FILTER_ID})"'
        if FILTER_ATTR_RE.search(attrs):
            attrs = FILTER_ATTR_RE.sub(ref, attrs, count=1)
        else:
            attrs = f'{attrs} {ref}'
        return f'<image{attrs}{close}>'

    return IMAGE_TAG_RE.sub(_image, svg)


def _replace_paint_attrs(svg: str, final: str) -> str:
    def _sub(match: re.Match) -> str:
        name, eq, quote, value = match.groups()
        if is_preserved_paint(value):
            return match.group(0)
        return f'{name}{eq}{quote}{final}{quote}'
    return PAINT_ATTR_RE.sub(_sub, svg)


def _replace_declarations(css: str, final: str, pattern: re.Pattern) -> str:
    def _sub(match: re.Match) -> str:
        prop, sep, value = match.groups()
        if is_preserved_paint(value):
            return match.group(0)
        trailing = value[len(value.rstrip()):]
        return f'{prop}{sep}{final}{trailing}'
    return pattern.sub(_sub, css)


def _replace_inline_styles(svg: str, final: str) -> str:
    def _sub(match: re.Match) -> str:
        prefix, quote, content = match.groups()
        return f'{prefix}{quote}{_replace_declarations(content, final, INLINE_PAINT_RE)}{quote}'
    return STYLE_ATTR_RE.sub(_sub, svg)


def _replace_style_blocks(svg: str, final: str) -> str:
    def _sub(match: re.Match) -> str:
        open_tag, css, close_tag = match.groups()
        return f'{open_tag}{_replace_declarations(css, final, CSS_PAINT_RE)}{close_tag}'
    return STYLE_BLOCK_RE.sub(_sub, svg)


def _set_root_color(svg: str, final: str) -> str:
    """Point currentColor at the target by setting the root color attribute."""
    def _sub(match: re.Match) -> str:
        tag = COLOR_ATTR_RE.sub("", match.group(0))
        closing = "/>" if tag.endswith("/>") else ">"
        body = tag[: -len(closing)].rstrip()
        return f'{body} color="{final}"{closing}'
    return ROOT_TAG_RE.sub(_sub, svg, count=1)


def _root_fill_is_none(svg: str) -> bool:
    root = ROOT_TAG_RE.search(svg)
    if not root:
        return False
    m = re.search(r'(?<![\w:-])fill\s*=\s*(["\'])(.*?)\1', root.group(0), re.IGNORECASE)
    return bool(m and m.group(2).strip().lower() == "none")


def _add_default_fills(svg: str, final: str) -> str:
    # Outline icon sets declare fill="none" on the root; filling them would blot the strokes.
    if _root_fill_is_none(svg):
        return svg

    def _sub(match: re.Match) -> str:
        tag, attrs, close = match.groups()
        if HAS_FILL_RE.search(attrs):
            return match.group(0)
        style = STYLE_ATTR_RE.search(attrs)
        if style and HAS_STYLE_FILL_RE.search(style.group(3)):
            return match.group(0)
        return f'<{tag}{attrs} fill="{final}"{close}>'
    return SHAPE_TAG_RE.sub(_sub, svg)


def recolor_svg(svg: str, target: Optional[str], fill_missing: bool = True) -> str:
    """
    Rewrite svg so its paint uses the target color token.
    Returns svg unchanged when no target is given.
    """
    if not target or not svg:
        return svg
    color = parse_color(target)

    if "<image" in svg.lower():
        return _apply_image_filter(svg, color)

    final = format_rgb(color)
    out = _replace_paint_attrs(svg, final)
    out = _replace_inline_styles(out, final)
    out = _replace_style_blocks(out, final)
    out = _set_root_color(out, final)
    if fill_missing:
        out = _add_default_fills(out, final)
    return out
