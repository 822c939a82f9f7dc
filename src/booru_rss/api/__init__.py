"""API package."""

from booru_rss.api.routes import router

__all__ = [
    "router",
]
