"""
icons_raster.py
---------------
Raster icons (PNG/JPEG/GIF/WebP) -> SVG.

The bitmap is first resampled to a high working resolution (Lanczos, never
enlarged). Then:

- with a target color: thresholded to a one-bit mask and traced into closed
  polygon paths, so the recolorer can paint it like any vector icon;
- without: the resampled PNG is embedded as base64 inside an <image> in an
  SVG envelope.

Decoding, resampling and tracing are CPU bound; callers run this off the
event loop. Images whose header announces more than `max_pixels` are refused
before any pixel is decoded, and resampling happens before the RGBA
conversion so only the working-size copy is ever four bytes per pixel.

Tracing emits straight polygon segments (OpenCV contours simplified with
approxPolyDP), not fitted Bezier curves. At badge size (12-20px tall) the
facets are sub-pixel; large curved logos traced with a colour look slightly
faceted when zoomed.
"""

from __future__ import annotations
import base64
import io
import logging
import re
from typing import List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageOps

from icons_classify import is_valid_image
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

ROOT_SIZE_ATTR = r'(<svg\b[^>]*?\s){name}\s*=\s*(["\']).*?\2'


def working_size(width: int, height: int, base: int = 512, floor: int = 256) -> Tuple[int, int]:
    """Bounding box for resampling: base on the long edge, floor on both."""
    ratio = width / height
    work_w = work_h = base
    if ratio > 1:
        work_h = round(base / ratio)
    else:
        work_w = round(base * ratio)
    return max(work_w, floor), max(work_h, floor)


class ImageTooLarge(ValueError):
    pass


def load_image(data: bytes, max_pixels: int = DEFAULT_SETTINGS.max_pixels, base: int = 512) -> Image.Image:
    """
    Decode fully (first frame for animations) so corrupt data fails here.
    The pixel count is checked from the header first; JPEGs decode straight
    at a reduced scale no smaller than base.
    """
    image = Image.open(io.BytesIO(data))
    width, height = image.size
    if width * height > max_pixels:
        raise ImageTooLarge(f"{width}x{height} exceeds {max_pixels} pixels")
    image.draft(image.mode, (base, base))
    image.load()
    image = ImageOps.exif_transpose(image)
    # palette and bilevel images only resize with nearest-neighbour
    if image.mode not in ("RGB", "RGBA", "L", "LA"):
        image = image.convert("RGBA")
    return image


def resample(image: Image.Image, box: Tuple[int, int]) -> Image.Image:
    """Lanczos downscale into box keeping the aspect ratio, in place; never enlarges. Returns RGBA."""
    image.thumbnail(box, Image.Resampling.LANCZOS)
    return image.convert("RGBA")


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG", optimize=False)
    return buf.getvalue()


def _foreground_mask(image: Image.Image, threshold: int) -> np.ndarray:
    """
    One-bit mask of what counts as ink.
    Transparent images trace their alpha silhouette; opaque ones trace dark pixels.
    """
    rgba = np.asarray(image.convert("RGBA"))
    alpha = rgba[:, :, 3]
    if alpha.min() < 255:
        ink = alpha >= threshold
    else:
        grey = np.asarray(image.convert("L"))
        ink = grey < threshold
    return ink.astype(np.uint8) * 255


def _contour_path(points: np.ndarray) -> str:
    coords = points.reshape(-1, 2)
    head = "M%d %d" % (coords[0][0], coords[0][1])
    rest = "".join("L%d %d" % (x, y) for x, y in coords[1:])
    return f"{head}{rest}Z"


def trace_bitmap(
    image: Image.Image,
    threshold: int = 128,
    turd_size: int = 2,
    tolerance: float = 0.4,
) -> Optional[str]:
    """
    Trace the image into a monochrome SVG.

    Outer contours and holes go into a single even-odd path. Blobs smaller
    than turd_size pixels are dropped; tolerance is the polygon simplification
    distance in pixels. Returns None when nothing is left to draw.
    """
    mask = _foreground_mask(image, threshold)
    contours, _hierarchy = cv2.findContours(mask, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_NONE)

    segments: List[str] = []
    for contour in contours:
        if cv2.contourArea(contour) < turd_size:
            continue
        approx = cv2.approxPolyDP(contour, tolerance, True) if tolerance > 0 else contour
        if len(approx) < 3:
            continue
        segments.append(_contour_path(approx))

    if not segments:
        return None

    width, height = image.size
    return (
        f'<svg xmlns="{SVG_NS}" width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<path d="{"".join(segments)}" fill="black" fill-rule="evenodd"/>'
        f'</svg>'
    )


def set_svg_size(svg: str, width: int, height: int) -> str:
    """Set width/height on the root <svg>, inserting them when absent."""
    for name, value in (("width", width), ("height", height)):
        pattern = re.compile(ROOT_SIZE_ATTR.format(name=name), re.IGNORECASE)
        if pattern.search(svg):
            svg = pattern.sub(lambda m: f'{m.group(1)}{name}="{value}"', svg, count=1)
        else:
            svg = re.sub(r'<svg\b', f'<svg {name}="{value}"', svg, count=1, flags=re.IGNORECASE)
    return svg


def embed_bitmap(png: bytes, width: int, height: int) -> str:
    """SVG envelope around a base64 PNG, sized for display."""
    encoded = base64.b64encode(png).decode("ascii")
    return (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" xmlns="{SVG_NS}" '
        f'shape-rendering="geometricPrecision" image-rendering="optimizeQuality" color-rendering="optimizeQuality">'
        f'<defs>'
        f'<filter id="icon-enhance">'
        f'<feColorMatrix type="saturate" values="1.0"/>'
        f'<feComponentTransfer>'
        f'<feFuncR type="gamma" amplitude="1" exponent="1.0"/>'
        f'<feFuncG type="gamma" amplitude="1" exponent="1.0"/>'
        f'<feFuncB type="gamma" amplitude="1" exponent="1.0"/>'
        f'</feComponentTransfer>'
        f'</filter>'
        f'</defs>'
        f'<image href="data:image/png;base64,{encoded}" width="{width}" height="{height}" '
        f'filter="url(#icon-enhance)" style="image-rendering: optimizeQuality;"/>'
        f'</svg>'
    )


def vectorize_raster(
    data: bytes,
    color: Optional[str] = None,
    settings: IconSettings = DEFAULT_SETTINGS,
) -> Optional[ProcessedIcon]:
    if not is_valid_image(data):
        return None
    try:
        image = load_image(data, settings.max_pixels, settings.working_size)
        native_w, native_h = image.size
        if native_w <= 0 or native_h <= 0:
            return None

        box = working_size(native_w, native_h, settings.working_size, settings.working_floor)
        working = resample(image, box)
        width, height = fit_display_size(
            native_w, native_h, settings.target_height, settings.max_width, settings.min_height,
        )

        if color:
            traced = trace_bitmap(
                working,
                threshold=settings.trace_threshold,
                turd_size=settings.trace_turd_size,
                tolerance=settings.trace_tolerance,
            )
            if traced is None:
                logger.warning("[icons] tracing produced no paths (%sx%s)", native_w, native_h)
                return None
            svg = recolor_svg(set_svg_size(traced, width, height), color)
        else:
            svg = embed_bitmap(encode_png(working), width, height)

        logger.info(
            "[icons] raster processed %sx%s from %sx%s (working %sx%s)",
            width, height, native_w, native_h, working.size[0], working.size[1],
        )
        return ProcessedIcon(svg_data_uri(svg), width, height)
    except ImageTooLarge as exc:
        logger.warning("[icons] raster rejected: %s", exc)
        return None
    except Exception as exc:
        logger.error("[icons] raster processing failed: %s", exc)
        return None
