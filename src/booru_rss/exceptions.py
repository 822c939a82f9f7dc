"""Custom exceptions for booru-rss.

Provides a structured exception hierarchy for different error scenarios.
"""


class BooruRssError(Exception):
    """Base exception class for all booru-rss errors."""

    pass


class ConfigError(BooruRssError):
    """Raised when a per-feed configuration file is malformed or incomplete.

    Attributes:
        source: The file or feed identifier the configuration came from.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Invalid config {source}: {message}")


class FetchError(BooruRssError):
    """Raised when the upstream post search fails at the transport level.

    Attributes:
        tags: The tag query that was being fetched.
    """

    def __init__(self, tags: str, message: str):
        self.tags = tags
        super().__init__(f"Failed to fetch posts for '{tags}': {message}")


class ParseError(BooruRssError):
    """Raised when the upstream response cannot be decoded into posts.

    Attributes:
        tags: The tag query whose response failed to parse.
    """

    def __init__(self, tags: str, message: str):
        self.tags = tags
        super().__init__(f"Failed to parse posts for '{tags}': {message}")


class FeedNotFoundError(BooruRssError):
    """Raised when a feed identifier has no configuration.

    Attributes:
        feed_id: The unknown feed identifier.
    """

    def __init__(self, feed_id: str):
        self.feed_id = feed_id
        super().__init__(f"Configuration not found for: {feed_id}")
