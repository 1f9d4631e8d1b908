"""
icons_classify.py
-----------------
Content-based detection of what an upstream server actually sent back.

Declared content types and URL extensions are ignored: CDNs happily return
an HTML error page with a 200 status and an image/* content type. Only the
bytes count.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class ImageKind(str, Enum):
    SVG = "svg"
    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    WEBP = "webp"
    INVALID = "invalid"

    @property
    def is_raster(self) -> bool:
        return self in (ImageKind.PNG, ImageKind.JPEG, ImageKind.GIF, ImageKind.WEBP)


@dataclass(frozen=True)
class Classification:
    is_valid_image: bool
    kind: ImageKind


INVALID = Classification(False, ImageKind.INVALID)

HTML_SNIFF_BYTES = 200
SVG_SNIFF_BYTES = 300

# Markers of an upstream error page rather than an image
ERROR_PAGE_MARKERS = ("<html", "<!DOCTYPE", "<body", "Error")

# Checked in order, first match wins
SIGNATURES: List[Tuple[bytes, ImageKind]] = [
    (b"\x89PNG\r\n\x1a\n", ImageKind.PNG),
    (b"\xff\xd8\xff", ImageKind.JPEG),
    (b"GIF87a", ImageKind.GIF),
    (b"GIF89a", ImageKind.GIF),
    (b"RIFF", ImageKind.WEBP),
]


def _head_text(data: bytes, size: int) -> str:
    return data[:size].decode("utf-8", errors="ignore")


def looks_like_error_page(data: bytes) -> bool:
    head = _head_text(data, HTML_SNIFF_BYTES)
    return any(marker in head for marker in ERROR_PAGE_MARKERS)


def is_svg(data: Optional[bytes]) -> bool:
    """Textual SVG detection, with or without an XML prolog."""
    if not data:
        return False
    head = _head_text(data, SVG_SNIFF_BYTES).strip().lower()
    if "<svg" in head:
        return True
    return "<?xml" in head and "svg" in head


def sniff_raster(data: bytes) -> Optional[ImageKind]:
    for signature, kind in SIGNATURES:
        if data.startswith(signature):
            return kind
    return None


def classify_image(data: Optional[bytes]) -> Classification:
    """Return whether the buffer is a usable image and which kind it is."""
    if not data:
        return INVALID
    try:
        if looks_like_error_page(data):
            return INVALID
        kind = sniff_raster(data)
        if kind is not None:
            return Classification(True, kind)
        if is_svg(data):
            return Classification(True, ImageKind.SVG)
    except Exception:  # pragma: no cover - bias towards rejecting
        return INVALID
    return INVALID


def is_valid_image(data: Optional[bytes]) -> bool:
    return classify_image(data).is_valid_image
