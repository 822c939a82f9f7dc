"""Models package."""

from booru_rss.models.cache import CacheEntry, CacheStatus, RefreshOutcome
from booru_rss.models.feed import FeedConfig, FeedRegistry
from booru_rss.models.post import PostRecord

__all__ = [
    "CacheEntry",
    "CacheStatus",
    "FeedConfig",
    "FeedRegistry",
    "PostRecord",
    "RefreshOutcome",
]
