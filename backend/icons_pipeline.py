"""
icons_pipeline.py
-----------------
Icon reference -> ProcessedIcon.

    resolve_icon_url -> IconFetcher.fetch -> classify_image
        -> normalize_svg | vectorize_raster   (recoloring happens inside both)

Every stage answers None on failure and the async entry point additionally
bounds the whole chain by a time budget, so a broken icon only ever costs the
badge its icon.
"""

from __future__ import annotations
import asyncio
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Hashable, Optional, Tuple

from icons_classify import ImageKind, classify_image
from icons_common import DEFAULT_SETTINGS, IconSettings, ProcessedIcon
from icons_fetch import IconFetcher
from icons_providers import resolve_icon_url
from icons_raster import vectorize_raster
from icons_svg_normalize import normalize_svg

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


class IconCache:
    """Bounded LRU with per-entry expiry, keyed by (url, color). Shared by worker threads."""

    def __init__(self, capacity: int = 256, ttl: float = 600.0, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, ProcessedIcon]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: Hashable) -> Optional[ProcessedIcon]:
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return None
            expires_at, icon = entry
            if self._clock() >= expires_at:
                return None
            # reinserting marks it most recently used
            self._entries[key] = entry
            return icon

    def put(self, key: Hashable, icon: ProcessedIcon) -> None:
        if self.capacity <= 0:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + self.ttl, icon)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class IconPipeline:
    def __init__(
        self,
        settings: IconSettings = DEFAULT_SETTINGS,
        fetcher: Optional[IconFetcher] = None,
        cache: Optional[IconCache] = None,
    ):
        self.settings = settings
        self.fetcher = fetcher or IconFetcher(
            timeout=settings.fetch_timeout,
            retry_timeout=settings.retry_timeout,
            max_bytes=settings.max_bytes,
        )
        self.cache = cache

    def process(self, reference: Optional[str], color: Optional[str] = None) -> Optional[ProcessedIcon]:
        """Run the full chain synchronously. Never raises."""
        url = resolve_icon_url(reference)
        if not url:
            return None

        key: CacheKey = (url, (color or "").strip().lower())
        try:
            if self.cache is not None:
                cached = self.cache.get(key)
                if cached is not None:
                    return cached

            icon = self._process_url(url, color)
            if icon is not None and self.cache is not None:
                self.cache.put(key, icon)
            return icon
        except Exception as exc:
            logger.error("[icons] pipeline failed for %s: %s", url, exc)
            return None

    def _process_url(self, url: str, color: Optional[str]) -> Optional[ProcessedIcon]:
        data = self.fetcher.fetch(url)
        if not data:
            return None

        classification = classify_image(data)
        if not classification.is_valid_image:
            logger.warning("[icons] %s did not return an image (%d bytes)", url, len(data))
            return None

        if classification.kind is ImageKind.SVG:
            return normalize_svg(data, color, self.settings)
        return vectorize_raster(data, color, self.settings)

    async def generate(self, reference: Optional[str], color: Optional[str] = None) -> Optional[ProcessedIcon]:
        """
        Async entry point for request handlers.

        Fetching and image work run in a worker thread; if the budget runs out
        the badge is rendered without an icon and the worker result is dropped.
        """
        if not reference:
            return None
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.process, reference, color),
                timeout=self.settings.stage_budget,
            )
        except asyncio.TimeoutError:
            logger.warning("[icons] %s exceeded %.1fs budget", reference, self.settings.stage_budget)
            return None
        except Exception as exc:
            logger.error("[icons] icon generation failed for %s: %s", reference, exc)
            return None
