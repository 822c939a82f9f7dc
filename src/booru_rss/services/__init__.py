"""Services package."""

from booru_rss.services.feed_service import FeedService

__all__ = [
    "FeedService",
]
