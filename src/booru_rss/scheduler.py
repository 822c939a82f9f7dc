"""Scheduler configuration using APScheduler.

Provides the periodic cache sweep that runs alongside on-demand refresh.
"""

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from booru_rss.services.feed_service import FeedService

logger = structlog.get_logger()

SWEEP_JOB_ID = "feed_cache_sweep"


def create_scheduler(
    feed_service: FeedService,
    interval_minutes: int = 10,
) -> AsyncIOScheduler:
    """Create and configure the task scheduler.

    Args:
        feed_service: Feed service whose sweep runs on each tick.
        interval_minutes: Minutes between sweeps.

    Returns:
        Configured AsyncIOScheduler (not started).
    """
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        feed_service.sweep,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=SWEEP_JOB_ID,
        name="Feed cache sweep",
        replace_existing=True,
        max_instances=1,  # A slow sweep must not overlap the next one
        coalesce=True,
    )

    logger.info(
        "Scheduler configured",
        job_id=SWEEP_JOB_ID,
        interval_minutes=interval_minutes,
    )

    return scheduler


async def run_once(feed_service: FeedService) -> dict:
    """Refresh every feed once immediately.

    Useful for manual triggers or testing.

    Args:
        feed_service: Feed service instance.

    Returns:
        Outcome value per feed id.
    """
    logger.info("Refreshing all feeds manually")
    return {feed_id: outcome.value for feed_id, outcome in await feed_service.refresh_all()}
