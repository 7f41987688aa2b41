"""In-process caches for data read on almost every request.

- ContentStore: active disciplines and universities
- DashboardStore: the tracking dashboard of each user

Both sit on cachetools.TTLCache: entries expire after
cache.content_ttl_seconds (5 minutes by default). Writes through the admin
endpoints clear the content store.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, TypeVar

import structlog
from cachetools import TTLCache

from examprep.config import load_app_config
from examprep.core import content, tracking
from examprep.db.content_repository import DisciplineRecord, UniversityRecord

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DASHBOARD_MAXSIZE = 1024


def _default_ttl() -> float:
    return load_app_config().cache.content_ttl_seconds


class _LockedCache:
    """TTLCache guarded by a lock; loaders run outside of it."""

    def __init__(self, maxsize: int, ttl: float, clock: Callable[[], float]):
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: Hashable, loader: Callable[[], T], force_refresh: bool = False) -> T:
        if not force_refresh:
            with self._lock:
                if key in self._entries:
                    return self._entries[key]

        value = loader()
        with self._lock:
            self._entries[key] = value
        logger.debug("cache.loaded", key=key)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


@dataclass
class ContentSnapshot:
    disciplines: list[DisciplineRecord] = field(default_factory=list)
    universities: list[UniversityRecord] = field(default_factory=list)

    def disciplines_for(self, university_id: str | None) -> list[DisciplineRecord]:
        if university_id is None:
            return self.disciplines
        return [d for d in self.disciplines if d.university_id == university_id]


class ContentStore:
    """Active disciplines (sorted by title) and universities (by name)."""

    KEY = "content"

    def __init__(self, ttl: float | None = None, clock: Callable[[], float] = time.monotonic):
        self._cache = _LockedCache(1, _default_ttl() if ttl is None else ttl, clock)

    def _load(self) -> ContentSnapshot:
        disciplines = sorted(content.list_disciplines(active_only=True), key=lambda d: d.title)
        return ContentSnapshot(
            disciplines=disciplines,
            universities=content.list_universities(active_only=True),
        )

    def fetch(self, force_refresh: bool = False) -> ContentSnapshot:
        return self._cache.get(self.KEY, self._load, force_refresh)

    def disciplines(self, university_id: str | None = None, force_refresh: bool = False) -> list[DisciplineRecord]:
        return self.fetch(force_refresh).disciplines_for(university_id)

    def clear(self) -> None:
        self._cache.clear()


class DashboardStore:
    """Per-user tracking dashboard."""

    def __init__(self, ttl: float | None = None, clock: Callable[[], float] = time.monotonic):
        self._cache = _LockedCache(DASHBOARD_MAXSIZE, _default_ttl() if ttl is None else ttl, clock)

    def _load(self, uid: str) -> dict[str, Any]:
        analysis = tracking.analyze_performance(uid)
        return {
            "profile": tracking.get_profile(uid),
            "analysis": analysis.to_dict() if analysis else None,
            "recommendations": tracking.get_recommendations(uid),
            "daily_goal": tracking.get_daily_goal(uid),
            "knowledge_gaps": [g.to_dict() for g in tracking.identify_knowledge_gaps(uid)],
        }

    def fetch(self, uid: str, force_refresh: bool = False) -> dict[str, Any]:
        return self._cache.get(uid, lambda: self._load(uid), force_refresh)

    def invalidate(self, uid: str) -> None:
        self._cache.invalidate(uid)

    def clear(self) -> None:
        self._cache.clear()


_content_store: ContentStore | None = None
_dashboard_store: DashboardStore | None = None


def get_content_store() -> ContentStore:
    global _content_store
    if _content_store is None:
        _content_store = ContentStore()
    return _content_store


def get_dashboard_store() -> DashboardStore:
    global _dashboard_store
    if _dashboard_store is None:
        _dashboard_store = DashboardStore()
    return _dashboard_store


def reset_stores() -> None:
    """Drop the shared stores (they are rebuilt from the config on next use)."""
    global _content_store, _dashboard_store
    _content_store = None
    _dashboard_store = None
