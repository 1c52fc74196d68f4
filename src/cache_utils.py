"""Cache utilities for the news feed.

Provides deterministic cache key computation and the in-process TTL cache
that sits in front of the upstream news API.
"""
from __future__ import annotations

import threading
import time
from typing import Callable


DEFAULT_TTL_SECONDS = 10 * 60


def compute_news_cache_key(user_id: str, preferences: list[str]) -> str:
    """
    Compute deterministic cache key for a user's news feed.

    Key = news:<user_id>:<sorted preferences joined by |>

    IMPORTANT INVARIANTS:
    - Preferences are sorted, so order in the stored record doesn't matter
    - Callers pass normalized preferences (see src.normalize), so the legacy
      "tech, sports" format and ["tech", "sports"] collide to the same key
    - user_id is the stable record id, not the email

    Args:
        user_id: users.user_id
        preferences: normalized category strings

    Returns:
        e.g. "news:3f2a...:sports|tech"
    """
    return f"news:{user_id}:{'|'.join(sorted(preferences))}"


def is_cache_expired(captured_at: float, ttl_seconds: float, now: float) -> bool:
    """
    Check if a cache entry has exceeded its TTL.
    Args:
        captured_at: clock reading when the entry was written
        ttl_seconds: max age in seconds before expiration
        now: current clock reading
    Returns:
        True if expired (age >= ttl), False if fresh
    """
    return (now - captured_at) >= ttl_seconds


class NewsCache:
    """
    In-memory map of cache key -> (articles, captured_at).

    - get() treats absent and stale entries the same (returns None)
    - stale entries are never swept; they stay until put() overwrites them
    - no size bound, no delete, lives for the process lifetime

    Entries are immutable tuples replaced under a lock, so a concurrent
    reader sees either the old or the new entry. Two concurrent misses for
    the same key may both put(); the last write wins.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[list, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> list | None:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        articles, captured_at = entry
        if is_cache_expired(captured_at, self.ttl_seconds, self._clock()):
            return None
        return articles

    def put(self, key: str, articles: list) -> None:
        entry = (articles, self._clock())
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        """Drop every entry. Only used to reset state between tests."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        # Physical presence, fresh or stale
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
