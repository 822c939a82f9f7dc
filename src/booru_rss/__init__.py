"""booru-rss: RSS feeds of Gelbooru artist tags."""

__version__ = "2.0.0"
