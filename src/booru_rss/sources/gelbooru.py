"""Gelbooru post search client."""

import httpx
import structlog
from pydantic import ValidationError

from booru_rss.exceptions import FetchError, ParseError
from booru_rss.models.post import PostRecord
from booru_rss.sources.base import DEFAULT_LIMIT
from booru_rss.utils.http_client import DEFAULT_USER_AGENT, create_http_client

logger = structlog.get_logger()

GELBOORU_API_URL = "https://gelbooru.com/index.php"
PROBE_LIMIT = 5


class GelbooruClient:
    """Gelbooru DAPI post search client.

    Issues exactly one request per call. No caching, no retries.
    """

    def __init__(
        self,
        api_url: str = GELBOORU_API_URL,
        api_key: str | None = None,
        user_id: str | None = None,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gelbooru client.

        Args:
            api_url: DAPI endpoint URL.
            api_key: Optional API key. Only sent together with user_id.
            user_id: Optional user ID. Only sent together with api_key.
            timeout: Request timeout in seconds.
            user_agent: User-Agent header for requests.
            transport: Optional httpx transport (used by tests).
        """
        self._api_url = api_url
        self._api_key = api_key or None
        self._user_id = user_id or None
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    @property
    def has_credentials(self) -> bool:
        """Whether requests carry the api_key/user_id pair."""
        return bool(self._api_key and self._user_id)

    def build_params(self, tags: str, limit: int = DEFAULT_LIMIT) -> dict[str, str]:
        """Build the query parameters for a post search."""
        params = {
            "page": "dapi",
            "s": "post",
            "q": "index",
            "json": "1",
            "tags": tags,
            "limit": str(limit),
        }
        if self.has_credentials:
            params["api_key"] = self._api_key
            params["user_id"] = self._user_id
        return params

    async def fetch_posts(self, tags: str, limit: int = DEFAULT_LIMIT) -> list[PostRecord]:
        """Fetch the newest posts for a tag query.

        Args:
            tags: Gelbooru tag query.
            limit: Maximum number of posts (the API caps this itself).

        Returns:
            Parsed posts in upstream order. Empty when nothing matches.

        Raises:
            FetchError: When the request fails or returns a non-2xx status.
            ParseError: When the body is not valid post JSON.
        """
        params = self.build_params(tags, limit)

        try:
            async with create_http_client(
                timeout=self._timeout,
                user_agent=self._user_agent,
                transport=self._transport,
            ) as client:
                response = await client.get(self._api_url, params=params)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(tags, f"Request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                tags, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise FetchError(tags, f"Request failed: {e}") from e

        return self._parse_response(response, tags)

    def _parse_response(self, response: httpx.Response, tags: str) -> list[PostRecord]:
        # Gelbooru answers an empty search with an empty body or no "post" key
        if not response.content.strip():
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(tags, f"Invalid JSON: {e}") from e

        if isinstance(data, dict):
            raw_posts = data.get("post") or []
        elif isinstance(data, list):
            raw_posts = data
        else:
            raise ParseError(tags, f"Unexpected response type: {type(data).__name__}")

        if not isinstance(raw_posts, list):
            raise ParseError(tags, "'post' is not a list")

        posts = []
        last_error = None
        for raw in raw_posts:
            try:
                posts.append(PostRecord.model_validate(raw))
            except ValidationError as e:
                last_error = e
                post_id = raw.get("id") if isinstance(raw, dict) else None
                logger.warning("Skipping invalid post", tags=tags, post_id=post_id, error=str(e))

        # One bad post should not cost the whole page
        if not posts and last_error is not None:
            raise ParseError(tags, str(last_error)) from last_error

        logger.debug("Posts fetched", tags=tags, count=len(posts))
        return posts
