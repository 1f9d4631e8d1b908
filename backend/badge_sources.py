"""
badge_sources.py
----------------
Values for dynamic badges. Each badge type maps to a DataSource with a
single fetch_value() call; remote sources answer "N/A" when the upstream
API fails so the badge still renders.
"""

from __future__ import annotations
import logging
import math
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

import requests

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
NPM_DOWNLOADS_API = "https://api.npmjs.org/downloads/point/last-month"
UNAVAILABLE = "N/A"
API_TIMEOUT = 10


class BadgeType(str, Enum):
    VIEWERS = "viewers"
    STARS = "stars"
    DOWNLOADS = "downloads"
    LAST_COMMIT = "last-commit"
    OPEN_ISSUES = "open-issues"

    @property
    def needs_package(self) -> bool:
        return self is BadgeType.DOWNLOADS


class MissingParameter(ValueError):
    def __init__(self, name: str):
        super().__init__(f"Missing {name} parameter")
        self.name = name


class DataSource(Protocol):
    def fetch_value(self) -> str:
        ...


class ViewCounter:
    """In-process view counts per repository. Not persisted."""

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, repo: str) -> int:
        with self._lock:
            count = self._counts.get(repo, 0) + 1
            self._counts[repo] = count
            return count

    def get(self, repo: str) -> int:
        with self._lock:
            return self._counts.get(repo, 0)


VIEW_COUNTER = ViewCounter()


class ViewersSource:
    def __init__(self, repo: str, counter: ViewCounter = VIEW_COUNTER):
        self.repo = repo
        self.counter = counter

    def fetch_value(self) -> str:
        return str(self.counter.increment(self.repo))


class JsonApiSource:
    """GET a JSON document and turn it into a display value."""

    def __init__(self, url: str, extract: Callable[[object], str], session: Optional[requests.Session] = None):
        self.url = url
        self.extract = extract
        self.session = session or requests

    def fetch_value(self) -> str:
        try:
            response = self.session.get(self.url, timeout=API_TIMEOUT)
            response.raise_for_status()
            return self.extract(response.json())
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("[badges] fetching %s failed: %s", self.url, exc)
            return UNAVAILABLE


def _days_since(timestamp: str, now: Optional[datetime] = None) -> int:
    then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    now = now or datetime.now(timezone.utc)
    return math.ceil(abs((now - then).total_seconds()) / 86400)


def _last_commit(payload) -> str:
    return f"{_days_since(payload[0]['commit']['committer']['date'])} days ago"


def build_source(
    badge_type: BadgeType,
    repo: Optional[str] = None,
    package: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> DataSource:
    """Strategy for a badge type. Raises MissingParameter when its identifier is absent."""
    if badge_type.needs_package:
        if not package:
            raise MissingParameter("package")
        return JsonApiSource(
            f"{NPM_DOWNLOADS_API}/{package}",
            lambda data: str(data["downloads"]),
            session,
        )

    if not repo:
        raise MissingParameter("repo")

    if badge_type is BadgeType.VIEWERS:
        return ViewersSource(repo)
    if badge_type is BadgeType.STARS:
        return JsonApiSource(f"{GITHUB_API}/repos/{repo}", lambda data: str(data["stargazers_count"]), session)
    if badge_type is BadgeType.OPEN_ISSUES:
        return JsonApiSource(f"{GITHUB_API}/repos/{repo}", lambda data: str(data["open_issues_count"]), session)
    if badge_type is BadgeType.LAST_COMMIT:
        return JsonApiSource(f"{GITHUB_API}/repos/{repo}/commits?per_page=1", _last_commit, session)
    raise ValueError(f"Unsupported badge type: {badge_type}")
