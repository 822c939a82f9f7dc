"""Sources package."""

from booru_rss.sources.base import DEFAULT_LIMIT, PostSource
from booru_rss.sources.gelbooru import PROBE_LIMIT, GelbooruClient

__all__ = [
    "PostSource",
    "GelbooruClient",
    "DEFAULT_LIMIT",
    "PROBE_LIMIT",
]
