"""Storage package."""

from booru_rss.storage.cache import FeedCacheStore

__all__ = [
    "FeedCacheStore",
]
