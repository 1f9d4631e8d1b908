"""
icons_svg_normalize.py
----------------------
Turn untrusted SVG from the internet into a badge-sized, self-contained icon.

Steps:
1. sanitize_svg      - parse and rebuild through an element/attribute allow list
2. extract_dimensions - intrinsic box from viewBox, else width/height, else 24x24
3. fit_display_size  - aspect-correct display size (icons_common)
4. inject_root_attributes - fresh xmlns/width/height/viewBox + rendering hints
5. recolor_svg       - optional, before serialization (icons_color_algorithm)
"""

from __future__ import annotations
import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from icons_color_algorithm import recolor_svg
from icons_common import (
    DEFAULT_SETTINGS,
    SVG_NS,
    IconSettings,
    ProcessedIcon,
    fit_display_size,
    svg_data_uri,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 24.0

ALLOWED_TAGS = {
    "svg", "g", "defs", "title", "desc", "symbol", "use",
    "path", "circle", "rect", "ellipse", "line", "polygon", "polyline",
    "clipPath", "mask", "linearGradient", "radialGradient", "stop", "pattern",
    "filter", "feBlend", "feColorMatrix", "feComponentTransfer", "feComposite",
    "feFlood", "feFuncA", "feFuncB", "feFuncG", "feFuncR", "feGaussianBlur",
    "feMerge", "feMergeNode", "feMorphology", "feOffset", "feDropShadow",
    "style",
}

ALLOWED_ATTRS = {
    # structure
    "id", "class", "style", "transform", "viewBox", "preserveAspectRatio",
    "width", "height", "x", "y", "href", "version",
    # geometry
    "d", "cx", "cy", "r", "rx", "ry", "x1", "y1", "x2", "y2", "points", "pathLength",
    # paint
    "fill", "fill-opacity", "fill-rule", "stroke", "stroke-width", "stroke-opacity",
    "stroke-linecap", "stroke-linejoin", "stroke-miterlimit", "stroke-dasharray",
    "stroke-dashoffset", "opacity", "color", "display", "visibility",
    "clip-path", "clip-rule", "mask", "filter", "vector-effect",
    # gradients / patterns / masks
    "offset", "stop-color", "stop-opacity", "gradientUnits", "gradientTransform",
    "spreadMethod", "fx", "fy", "fr", "patternUnits", "patternContentUnits",
    "patternTransform", "clipPathUnits", "maskUnits", "maskContentUnits",
    # filters
    "in", "in2", "result", "type", "values", "stdDeviation", "dx", "dy", "mode",
    "operator", "k1", "k2", "k3", "k4", "radius", "flood-color", "flood-opacity",
    "slope", "intercept", "amplitude", "exponent", "tableValues",
    "filterUnits", "primitiveUnits", "color-interpolation-filters",
}

UNSAFE_CSS_RE = re.compile(r'javascript:|expression\s*\(|@import|behavior\s*:|-moz-binding', re.IGNORECASE)
EXTERNAL_URL_RE = re.compile(r'url\(\s*["\']?(?!#)', re.IGNORECASE)
DOCTYPE_RE = re.compile(r'<!DOCTYPE[^>\[]*(\[.*?\])?\s*>', re.IGNORECASE | re.DOTALL)
PROLOG_RE = re.compile(r'<\?xml[^>]*\?>', re.IGNORECASE)
ROOT_OPEN_RE = re.compile(r'<svg\b([^>]*?)(/?)>', re.IGNORECASE)
NUMBER_RE = re.compile(r'^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(px)?\s*$')


@dataclass(frozen=True)
class SvgBox:
    min_x: float
    min_y: float
    width: float
    height: float

    @property
    def view_box(self) -> str:
        return " ".join(_fmt(v) for v in (self.min_x, self.min_y, self.width, self.height))


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return ("%.4f" % value).rstrip("0").rstrip(".")


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def _unsafe_css(value: str) -> bool:
    return bool(UNSAFE_CSS_RE.search(value) or EXTERNAL_URL_RE.search(value))


def _clean_element(elem: ET.Element) -> None:
    elem.tag = _local(elem.tag)

    for name, value in list(elem.attrib.items()):
        del elem.attrib[name]
        local = _local(name)
        if local not in ALLOWED_ATTRS or local.lower().startswith("on"):
            continue
        if local == "href" and not value.strip().startswith("#"):
            continue
        if _unsafe_css(value) and local in ("style", "fill", "stroke", "filter", "mask", "clip-path"):
            continue
        elem.set(local, value)

    if elem.tag == "style" and elem.text and _unsafe_css(elem.text):
        elem.text = ""

    for child in list(elem):
        if not isinstance(child.tag, str) or _local(child.tag) not in ALLOWED_TAGS:
            elem.remove(child)
            continue
        _clean_element(child)


def sanitize_svg(markup: str) -> Optional[str]:
    """
    Rebuild markup keeping only allow-listed drawing elements and attributes.
    Scripts, foreignObject, event handlers and external references are dropped.
    Returns None if the markup is not a parseable <svg> document.
    """
    text = markup.lstrip("\ufeff")
    text = PROLOG_RE.sub("", text)
    # Entity definitions live in the DTD; without it entity references fail to parse.
    text = DOCTYPE_RE.sub("", text).strip()

    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        logger.warning("[icons] svg parse failed: %s", exc)
        return None
    if _local(root.tag) != "svg":
        return None

    _clean_element(root)
    return ET.tostring(root, encoding="unicode", short_empty_elements=True)


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    m = NUMBER_RE.match(raw)
    if not m:
        return None
    value = float(m.group(1))
    return value if math.isfinite(value) else None


def _root_attr(root_attrs: str, name: str) -> Optional[str]:
    m = re.search(r'(?<![\w:-])%s\s*=\s*(["\'])(.*?)\1' % re.escape(name), root_attrs, re.DOTALL)
    return m.group(2) if m else None


def _sane(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        return DEFAULT_SIZE
    return value


def extract_dimensions(markup: str) -> SvgBox:
    """Intrinsic box of the root <svg>: viewBox first, then width/height, then 24x24."""
    root = ROOT_OPEN_RE.search(markup)
    attrs = root.group(1) if root else ""

    view_box = _root_attr(attrs, "viewBox")
    if view_box:
        parts = [p for p in re.split(r'[\s,]+', view_box.strip()) if p]
        if len(parts) >= 4:
            nums = [_parse_number(p) for p in parts[:4]]
            min_x = nums[0] if nums[0] is not None else 0.0
            min_y = nums[1] if nums[1] is not None else 0.0
            return SvgBox(min_x, min_y, _sane(nums[2]), _sane(nums[3]))

    width = _parse_number(_root_attr(attrs, "width"))
    height = _parse_number(_root_attr(attrs, "height"))
    return SvgBox(0.0, 0.0, _sane(width), _sane(height))


def inject_root_attributes(markup: str, box: SvgBox, width: int, height: int) -> str:
    """Replace size/namespace attributes on the root <svg> and add rendering hints."""
    def _rewrite(match: re.Match) -> str:
        attrs = match.group(1)
        attrs = re.sub(r'\s*xmlns(:\w+)?\s*=\s*(["\']).*?\2', "", attrs)
        attrs = re.sub(
            r'\s*(?<![\w:-])(width|height|viewBox|shape-rendering|text-rendering|image-rendering|color-rendering)'
            r'\s*=\s*(["\']).*?\2',
            "",
            attrs,
            flags=re.IGNORECASE,
        )
        quality = " ".join([
            'shape-rendering="geometricPrecision"',
            'text-rendering="optimizeLegibility"',
            'image-rendering="optimizeQuality"',
            'color-rendering="optimizeQuality"',
            f'width="{width}"',
            f'height="{height}"',
            f'viewBox="{box.view_box}"',
            f'xmlns="{SVG_NS}"',
        ])
        attrs = attrs.strip()
        head = f"<svg {attrs} {quality}" if attrs else f"<svg {quality}"
        return f"{head}{' /' if match.group(2) else ''}>"

    return ROOT_OPEN_RE.sub(_rewrite, markup, count=1)


def normalize_svg(
    data: bytes,
    color: Optional[str] = None,
    settings: IconSettings = DEFAULT_SETTINGS,
) -> Optional[ProcessedIcon]:
    try:
        clean = sanitize_svg(data.decode("utf-8", errors="replace"))
        if clean is None:
            return None

        box = extract_dimensions(clean)
        width, height = fit_display_size(
            box.width, box.height, settings.target_height, settings.max_width, settings.min_height,
        )

        if color:
            clean = recolor_svg(clean, color)
        final = inject_root_attributes(clean, box, width, height)

        logger.info(
            "[icons] svg normalized %sx%s from %sx%s",
            width, height, _fmt(box.width), _fmt(box.height),
        )
        return ProcessedIcon(svg_data_uri(final), width, height)
    except Exception as exc:
        logger.error("[icons] svg processing failed: %s", exc)
        return None
