"""
icons_fetch.py
--------------
Bounded download of icon images.

Every request carries a timeout and a byte cap; responses larger than the cap
are rejected rather than truncated. The timeout bounds each socket read and
also the whole download, so a server dripping bytes cannot hold a worker. Connection resets and timeouts get one
retry with a longer timeout. Callers only ever see bytes or None.
"""

from __future__ import annotations
import logging
import time
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; BadgeGenerator/1.0)"
ACCEPT = "image/svg+xml,image/png,image/jpeg,image/gif,image/webp,image/*;q=0.8,*/*;q=0.5"

DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_TIMEOUT = 15.0
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


class IconFetchError(Exception):
    """Upstream answered, but not with something we are willing to use."""


def _iter_arrivals(response):
    """Yield body bytes as they arrive; each read returns after at most one socket read."""
    while True:
        chunk = response.raw.read1(CHUNK_SIZE, decode_content=True)
        if not chunk:
            return
        yield chunk


class IconFetcher:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        retry_timeout: float = DEFAULT_RETRY_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout = timeout
        self.retry_timeout = retry_timeout
        self.max_bytes = max_bytes
        self.session = session or requests.Session()
        self._clock = clock
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": ACCEPT,
            "Accept-Encoding": "gzip, deflate",
        })

    def _download(self, url: str, timeout: float) -> bytes:
        deadline = self._clock() + timeout
        with self.session.get(url, timeout=timeout, stream=True) as response:
            if not 200 <= response.status_code < 300:
                raise IconFetchError(f"HTTP {response.status_code}")

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise IconFetchError(f"Content-Length {declared} exceeds {self.max_bytes} bytes")

            size = 0
            chunks = []
            for chunk in _iter_arrivals(response):
                size += len(chunk)
                if size > self.max_bytes:
                    raise IconFetchError(f"Response exceeds {self.max_bytes} bytes")
                if self._clock() > deadline:
                    raise IconFetchError(f"Download exceeded {timeout}s")
                chunks.append(chunk)
            return b"".join(chunks)

    def fetch(self, url: Optional[str]) -> Optional[bytes]:
        """Download url; None on any failure."""
        if not url:
            return None
        logger.info("[icons] fetching %s", url)
        try:
            return self._download(url, self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("[icons] fetch failed for %s (%s), retrying", url, exc)
            try:
                return self._download(url, self.retry_timeout)
            except (requests.RequestException, IconFetchError) as retry_exc:
                logger.error("[icons] retry failed for %s: %s", url, retry_exc)
                return None
        except IconFetchError as exc:
            logger.warning("[icons] rejected %s: %s", url, exc)
            return None
        except requests.RequestException as exc:
            logger.error("[icons] fetch failed for %s: %s", url, exc)
            return None
