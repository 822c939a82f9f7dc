"""In-memory per-feed cache of rendered RSS documents.

Entries live only as long as the process.
"""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from booru_rss.models.cache import CacheEntry


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeedCacheStore:
    """Per-feed cache with TTL expiry and a single-slot refresh lock.

    The in_progress flag of each entry is the mutual exclusion token:
    begin_refresh sets it with a compare-and-set, and commit/abort clear it.
    """

    def __init__(
        self,
        interval_minutes: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize cache store.

        Args:
            interval_minutes: Time-to-live of a committed document.
            clock: Returns the current aware datetime. Injected by tests.
        """
        self._interval = timedelta(minutes=interval_minutes)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def interval(self) -> timedelta:
        return self._interval

    def needs_refresh(self, feed_id: str) -> bool:
        """Check whether a feed's cached document is missing or expired.

        Returns:
            True if there is no entry, no content, or the entry is at least
            one interval old.
        """
        with self._lock:
            entry = self._entries.get(feed_id)
            if entry is None or entry.content is None or entry.last_update is None:
                return True
            return self._clock() - entry.last_update >= self._interval

    def begin_refresh(self, feed_id: str) -> bool:
        """Claim the refresh slot for a feed.

        Returns:
            True if the caller now owns the refresh cycle, False if another
            cycle is already running (the caller must skip).
        """
        with self._lock:
            entry = self._entries.setdefault(feed_id, CacheEntry())
            if entry.in_progress:
                return False
            entry.in_progress = True
            return True

    def commit(self, feed_id: str, content: str, post_count: int) -> None:
        """Store a freshly rendered document and release the refresh slot."""
        with self._lock:
            entry = self._entries.setdefault(feed_id, CacheEntry())
            entry.content = content
            entry.last_update = self._clock()
            entry.post_count = post_count
            entry.in_progress = False

    def abort(self, feed_id: str) -> None:
        """Release the refresh slot, keeping the previous document."""
        with self._lock:
            entry = self._entries.get(feed_id)
            if entry is not None:
                entry.in_progress = False

    def get(self, feed_id: str) -> CacheEntry | None:
        """Return a snapshot of a feed's entry, or None if never touched."""
        with self._lock:
            entry = self._entries.get(feed_id)
            return replace(entry) if entry is not None else None

    def next_update(self, feed_id: str) -> datetime | None:
        """When the cached document expires, or None if never committed."""
        entry = self.get(feed_id)
        if entry is None or entry.last_update is None:
            return None
        return entry.last_update + self._interval
