"""Renderers package."""

from booru_rss.renderers.rss import render_feed

__all__ = [
    "render_feed",
]
