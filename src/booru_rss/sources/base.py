"""Abstract post source interface using Protocol."""

from typing import Protocol

from booru_rss.models.post import PostRecord

DEFAULT_LIMIT = 20


class PostSource(Protocol):
    """Upstream post search abstraction protocol.

    Any object with a matching fetch_posts coroutine satisfies it.
    """

    async def fetch_posts(self, tags: str, limit: int = DEFAULT_LIMIT) -> list[PostRecord]:
        """Fetch the newest posts matching a tag query.

        Args:
            tags: Tag query string.
            limit: Maximum number of posts to return.

        Returns:
            Parsed posts, newest first. Empty when nothing matches.

        Raises:
            FetchError: When the network request fails.
            ParseError: When the response cannot be decoded.
        """
        ...
