"""Feed refresh service - main orchestration layer.

Coordinates upstream fetching, RSS rendering and the feed cache.
"""

import structlog

from booru_rss.exceptions import BooruRssError, FeedNotFoundError
from booru_rss.models.cache import CacheStatus, RefreshOutcome
from booru_rss.models.feed import FeedConfig, FeedRegistry
from booru_rss.models.post import PostRecord
from booru_rss.renderers.rss import render_feed
from booru_rss.sources.base import DEFAULT_LIMIT, PostSource
from booru_rss.sources.gelbooru import PROBE_LIMIT
from booru_rss.storage.cache import FeedCacheStore

logger = structlog.get_logger()


class FeedService:
    """Feed refresh service.

    Incoming requests, the scheduled sweep, manual refreshes and the startup
    warm-up all run the same refresh() cycle.
    """

    def __init__(
        self,
        feeds: FeedRegistry,
        source: PostSource,
        cache: FeedCacheStore,
        base_url: str,
        interval_minutes: int = 10,
        post_limit: int = DEFAULT_LIMIT,
    ):
        """Initialize feed service.

        Args:
            feeds: Loaded feed configurations.
            source: Upstream post source.
            cache: Cache store shared with the HTTP layer.
            base_url: Externally visible base URL for self links.
            interval_minutes: Refresh interval, published as the feed ttl.
            post_limit: Number of posts fetched per refresh.
        """
        self._feeds = feeds
        self._source = source
        self._cache = cache
        self._base_url = base_url
        self._interval_minutes = interval_minutes
        self._post_limit = post_limit

    @property
    def feeds(self) -> FeedRegistry:
        return self._feeds

    @property
    def interval_minutes(self) -> int:
        return self._interval_minutes

    def get_config(self, feed_id: str) -> FeedConfig:
        """Look up a feed's configuration.

        Raises:
            FeedNotFoundError: If the feed id is not configured.
        """
        config = self._feeds.get(feed_id)
        if config is None:
            raise FeedNotFoundError(feed_id)
        return config

    async def refresh(self, feed_id: str) -> RefreshOutcome:
        """Run one fetch + render + commit cycle for a feed.

        Skips without waiting when another cycle already owns the feed.
        Upstream failures and empty results leave the cached document as is.

        Args:
            feed_id: Feed to refresh.

        Returns:
            Outcome of the cycle.

        Raises:
            FeedNotFoundError: If the feed id is not configured.
        """
        config = self.get_config(feed_id)
        log = logger.bind(feed_id=feed_id)

        if not self._cache.begin_refresh(feed_id):
            log.info("Update already in progress, skipping")
            return RefreshOutcome.IN_PROGRESS

        committed = False
        try:
            log.info("Updating cache", tags=config.tag)
            try:
                posts = await self._source.fetch_posts(config.tag, limit=self._post_limit)
            except BooruRssError as e:
                log.warning("Upstream fetch failed, keeping previous cache", error=str(e))
                return RefreshOutcome.FAILED

            content = render_feed(
                posts,
                config,
                feed_id,
                base_url=self._base_url,
                interval_minutes=self._interval_minutes,
            )
            if content is None:
                log.warning("No posts found")
                return RefreshOutcome.EMPTY

            self._cache.commit(feed_id, content, len(posts))
            committed = True
            log.info("Cache updated", post_count=len(posts))
            return RefreshOutcome.UPDATED
        finally:
            if not committed:
                self._cache.abort(feed_id)

    async def refresh_if_stale(self, feed_id: str) -> RefreshOutcome | None:
        """Refresh a feed only if its cache is missing or expired.

        Returns:
            Outcome of the cycle, or None if the cache was still fresh.
        """
        if not self._cache.needs_refresh(feed_id):
            return None
        logger.info("Cache expired, updating", feed_id=feed_id)
        return await self.refresh(feed_id)

    async def get_content(self, feed_id: str) -> str | None:
        """Return a feed's RSS document, refreshing first if stale.

        While another cycle runs, the previous document is returned.

        Returns:
            The cached document, or None if no document is available.

        Raises:
            FeedNotFoundError: If the feed id is not configured.
        """
        self.get_config(feed_id)
        await self.refresh_if_stale(feed_id)
        entry = self._cache.get(feed_id)
        return entry.content if entry else None

    async def sweep(self) -> dict[str, RefreshOutcome]:
        """Refresh every feed whose cache is stale.

        Returns:
            Outcome per refreshed feed id (fresh feeds are left out).
        """
        logger.info("Running automatic update", feed_count=len(self._feeds))
        outcomes = {}
        for feed_id in list(self._feeds):
            if self._cache.needs_refresh(feed_id):
                outcomes[feed_id] = await self._refresh_isolated(feed_id)
        return outcomes

    async def warm_up(self) -> dict[str, RefreshOutcome]:
        """Run one unconditional cycle per feed, sequentially.

        Returns:
            Outcome per feed id.
        """
        logger.info("Initializing caches", feed_count=len(self._feeds))
        return dict(await self.refresh_all())

    async def refresh_all(self) -> list[tuple[str, RefreshOutcome]]:
        """Force a refresh cycle for every configured feed.

        An unexpected error in one feed is logged and reported as ERROR
        without stopping the others.

        Returns:
            (feed_id, outcome) pairs in configuration order.
        """
        return [(feed_id, await self._refresh_isolated(feed_id)) for feed_id in list(self._feeds)]

    async def _refresh_isolated(self, feed_id: str) -> RefreshOutcome:
        try:
            return await self.refresh(feed_id)
        except Exception:
            logger.exception("Unexpected error while updating cache", feed_id=feed_id)
            return RefreshOutcome.ERROR

    async def probe(self, feed_id: str, limit: int = PROBE_LIMIT) -> list[PostRecord]:
        """Fetch a small fresh sample for diagnostics, bypassing the cache.

        Raises:
            FeedNotFoundError: If the feed id is not configured.
            FetchError: When the upstream request fails.
            ParseError: When the upstream response is invalid.
        """
        config = self.get_config(feed_id)
        return await self._source.fetch_posts(config.tag, limit=limit)

    def cache_status(self, feed_id: str) -> CacheStatus:
        """Describe a feed's cache state."""
        entry = self._cache.get(feed_id)
        return CacheStatus(
            has_cache=bool(entry and entry.content),
            last_update=entry.last_update if entry else None,
            next_update=self._cache.next_update(feed_id),
            needs_update=self._cache.needs_refresh(feed_id),
            is_updating=entry.in_progress if entry else False,
            post_count=entry.post_count if entry else 0,
        )
