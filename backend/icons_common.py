"""Shared icon types, tunables and display-size math for the SVG and raster paths."""

from __future__ import annotations
import base64
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

SVG_NS = "http://www.w3.org/2000/svg"


@dataclass(frozen=True)
class ProcessedIcon:
    """An icon ready to embed: self-contained data URI plus display size."""
    data_uri: str
    width: int
    height: int


@dataclass(frozen=True)
class IconSettings:
    # display size
    target_height: int = 16
    max_width: int = 40
    min_height: int = 12
    # raster resampling
    working_size: int = 512
    working_floor: int = 256
    # decoded pixel ceiling, checked before decoding
    max_pixels: int = 16_000_000
    # contour tracing
    trace_threshold: int = 128
    trace_turd_size: int = 2
    trace_tolerance: float = 0.4
    # fetch limits
    fetch_timeout: float = 10.0
    retry_timeout: float = 15.0
    max_bytes: int = 5 * 1024 * 1024
    # whole icon stage, fetch included
    stage_budget: float = 20.0
    # cache (0 disables)
    cache_size: int = 256
    cache_ttl: float = 600.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "IconSettings":
        env = os.environ if env is None else env
        d = cls()
        return cls(
            target_height=int(env.get("ICON_TARGET_HEIGHT", d.target_height)),
            max_width=int(env.get("ICON_MAX_WIDTH", d.max_width)),
            min_height=int(env.get("ICON_MIN_HEIGHT", d.min_height)),
            working_size=int(env.get("ICON_WORKING_SIZE", d.working_size)),
            working_floor=int(env.get("ICON_WORKING_FLOOR", d.working_floor)),
            max_pixels=int(env.get("ICON_MAX_PIXELS", d.max_pixels)),
            trace_threshold=int(env.get("ICON_TRACE_THRESHOLD", d.trace_threshold)),
            trace_turd_size=int(env.get("ICON_TRACE_TURD_SIZE", d.trace_turd_size)),
            trace_tolerance=float(env.get("ICON_TRACE_TOLERANCE", d.trace_tolerance)),
            fetch_timeout=float(env.get("ICON_FETCH_TIMEOUT", d.fetch_timeout)),
            retry_timeout=float(env.get("ICON_RETRY_TIMEOUT", d.retry_timeout)),
            max_bytes=int(float(env.get("ICON_MAX_SIZE_MB", "5")) * 1024 * 1024),
            stage_budget=float(env.get("ICON_STAGE_BUDGET", d.stage_budget)),
            cache_size=int(env.get("ICON_CACHE_SIZE", d.cache_size)),
            cache_ttl=float(env.get("ICON_CACHE_TTL", d.cache_ttl)),
        )


DEFAULT_SETTINGS = IconSettings()


def svg_data_uri(markup: str) -> str:
    encoded = base64.b64encode(markup.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def fit_display_size(
    width: float,
    height: float,
    target_height: int = DEFAULT_SETTINGS.target_height,
    max_width: int = DEFAULT_SETTINGS.max_width,
    min_height: int = DEFAULT_SETTINGS.min_height,
) -> Tuple[int, int]:
    """
    Scale (width, height) to target_height keeping the aspect ratio.

    Wide glyphs are clamped to max_width with the height recomputed from the
    ratio, but never below min_height (the width is then recomputed again).
    """
    if not (width > 0 and height > 0) or not math.isfinite(width) or not math.isfinite(height):
        return target_height, target_height

    ratio = width / height
    if not math.isfinite(ratio) or ratio <= 0:
        return target_height, target_height

    out_h = target_height
    out_w = max(1, round(out_h * ratio))
    if max_width and out_w > max_width:
        out_w = max_width
        out_h = max(1, round(max_width / ratio))
        if out_h < min_height:
            out_h = min_height
            out_w = max(1, round(out_h * ratio))
    return out_w, out_h
