"""HTTP client utilities.

Provides configured HTTP client with sensible defaults.
"""

import httpx

DEFAULT_USER_AGENT = "booru-rss/2.0 (+https://gelbooru.com)"


def create_http_client(
    timeout: float = 30,
    user_agent: str = DEFAULT_USER_AGENT,
    follow_redirects: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create a configured async HTTP client.

    Args:
        timeout: Request timeout in seconds.
        user_agent: User-Agent header value.
        follow_redirects: Whether to follow redirects.
        transport: Optional transport override (mock transports in tests).

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": user_agent},
        follow_redirects=follow_redirects,
        transport=transport,
    )
