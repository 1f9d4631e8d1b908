import io
import time

import pytest
from PIL import Image


GITHUB_SVG = (
    b'<svg role="img" viewBox="0 0 24 24" xmlns="http://www.w3.org/2000/svg">'
    b'<title>GitHub</title>'
    b'<path d="M12 .3a12 12 0 0 0-3.8 23.4c.6.1.8-.3.8-.6v-2.2c-3.3.7-4-1.4-4-1.4z" fill="#181717"/>'
    b'</svg>'
)

HTML_404 = (
    b'<!DOCTYPE html><html><head><title>404 Not Found</title></head>'
    b'<body><h1>Not Found</h1></body></html>'
)


class FakeFetcher:
    """Stands in for IconFetcher: url -> bytes, optional delay per call."""

    def __init__(self, responses=None, delay=0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if self.delay:
            time.sleep(self.delay)
        return self.responses.get(url)


def _encode(image, fmt, **kwargs):
    buf = io.BytesIO()
    image.save(buf, format=fmt, **kwargs)
    return buf.getvalue()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def github_svg():
    return GITHUB_SVG


@pytest.fixture
def html_404():
    return HTML_404


@pytest.fixture
def png_bytes():
    """Transparent PNG with an opaque dark square in the middle."""
    def make(size=(64, 64)):
        image = Image.new("RGBA", size, (0, 0, 0, 0))
        w, h = size
        square = Image.new("RGBA", (w // 2, h // 2), (20, 20, 20, 255))
        image.paste(square, (w // 4, h // 4))
        return _encode(image, "PNG")
    return make


@pytest.fixture
def jpeg_bytes():
    """Opaque JPEG with a dark band on a light background."""
    def make(size=(200, 100)):
        image = Image.new("RGB", size, (240, 240, 240))
        w, h = size
        band = Image.new("RGB", (w // 2, h // 2), (10, 10, 10))
        image.paste(band, (w // 4, h // 4))
        return _encode(image, "JPEG", quality=90)
    return make
