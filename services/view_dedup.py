"""
Short-window guard against counting the same viewer twice for one post.

A view is counted when the (viewer, post) key was never seen or was last seen
more than the window ago. The cache behind it is injected: an in-process
bounded cache by default, or Redis when several workers share the count.
"""

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from core.config import Settings

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown_ip"
CACHE_KEY_PREFIX = "post_view:"
EPOCH = datetime(1970, 1, 1)


def view_key(viewer_ip: str, post_id: str) -> str:
    return f"{viewer_ip}:{post_id}"


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IP


class ViewCache(ABC):
    """Last-seen timestamps by key."""

    @abstractmethod
    def seen(self, key: str) -> Optional[datetime]:
        ...

    @abstractmethod
    def mark(self, key: str, at: datetime) -> None:
        ...


class InMemoryViewCache(ViewCache):
    """Insertion-ordered cache, bounded by size and by age.

    Entries older than ``ttl`` can never suppress a view, so they are dropped
    on every write; past ``max_entries`` the least recently marked go first.
    """

    def __init__(self, ttl: timedelta, max_entries: int = 10000):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, datetime]" = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def seen(self, key: str) -> Optional[datetime]:
        with self._lock:
            return self._entries.get(key)

    def mark(self, key: str, at: datetime) -> None:
        with self._lock:
            self._entries[key] = at
            self._entries.move_to_end(key)
            self._evict(at)

    def _evict(self, now: datetime) -> None:
        cutoff = now - self.ttl
        while self._entries:
            oldest_key, oldest_at = next(iter(self._entries.items()))
            if oldest_at >= cutoff and len(self._entries) <= self.max_entries:
                break
            self._entries.pop(oldest_key)


class RedisViewCache(ViewCache):
    """Shared cache; each key expires on its own after ``ttl``."""

    def __init__(self, client, ttl: timedelta):
        self.client = client
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{CACHE_KEY_PREFIX}{key}"

    def seen(self, key: str) -> Optional[datetime]:
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("View cache get failed: %s", e)
            return None
        if raw is None:
            return None
        return EPOCH + timedelta(milliseconds=int(raw))

    def mark(self, key: str, at: datetime) -> None:
        millis = int((at - EPOCH) / timedelta(milliseconds=1))
        try:
            self.client.set(self._key(key), millis, px=int(self.ttl / timedelta(milliseconds=1)))
        except redis.RedisError as e:
            logger.warning("View cache set failed: %s", e)


class ViewDeduplicator:
    def __init__(self, cache: ViewCache, window_ms: int = 5000):
        self.cache = cache
        self.window = timedelta(milliseconds=window_ms)
        self._lock = Lock()

    def record_view(self, viewer_ip: str, post_id: str, now: datetime) -> bool:
        """Return True when this view should increment the post's counter."""
        key = view_key(viewer_ip or UNKNOWN_IP, post_id)
        with self._lock:
            last_seen = self.cache.seen(key)
            if last_seen is not None and now - last_seen <= self.window:
                return False
            self.cache.mark(key, now)
            return True


def build_view_deduplicator(settings: Settings) -> ViewDeduplicator:
    # Twice the window: expiry must never be what lets a view through
    ttl = timedelta(milliseconds=settings.VIEW_DEDUP_WINDOW_MS * 2)
    if settings.VIEW_CACHE_BACKEND == "redis":
        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        cache: ViewCache = RedisViewCache(client, ttl)
    else:
        cache = InMemoryViewCache(ttl, max_entries=settings.VIEW_CACHE_MAX_ENTRIES)
    logger.info("View dedup using %s cache, window %sms", settings.VIEW_CACHE_BACKEND, settings.VIEW_DEDUP_WINDOW_MS)
    return ViewDeduplicator(cache, window_ms=settings.VIEW_DEDUP_WINDOW_MS)


def get_view_deduplicator(request: Request) -> ViewDeduplicator:
    return request.app.state.view_deduplicator
