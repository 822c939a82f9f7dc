"""Config package."""

from booru_rss.config.loader import load_feed_configs
from booru_rss.config.settings import Settings

__all__ = [
    "Settings",
    "load_feed_configs",
]
