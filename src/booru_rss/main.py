"""Main application entry point.

Initializes all components and starts the application with
scheduler and API server.
"""

import argparse
import asyncio
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booru_rss import __version__
from booru_rss.api import router
from booru_rss.config.loader import load_feed_configs
from booru_rss.config.settings import Settings, settings
from booru_rss.scheduler import create_scheduler, run_once
from booru_rss.services.feed_service import FeedService
from booru_rss.sources.gelbooru import GelbooruClient
from booru_rss.storage.cache import FeedCacheStore
from booru_rss.utils.logger import configure_logging, get_logger


def build_feed_service(app_settings: Settings) -> FeedService:
    """Load feed configs and wire the service graph.

    Config loading completes before any refresh can run.
    """
    feeds = load_feed_configs(
        app_settings.configs_dir,
        create_examples=app_settings.create_example_configs,
    )
    client = GelbooruClient(
        api_url=app_settings.gelbooru_api_url,
        api_key=app_settings.api_key_value,
        user_id=app_settings.gelbooru_user_id,
        timeout=app_settings.upstream_timeout,
        user_agent=app_settings.user_agent,
    )
    cache = FeedCacheStore(interval_minutes=app_settings.update_interval_minutes)
    return FeedService(
        feeds=feeds,
        source=client,
        cache=cache,
        base_url=app_settings.full_base_url,
        interval_minutes=app_settings.update_interval_minutes,
    )


def log_banner(app_settings: Settings, feed_service: FeedService) -> None:
    """Log the effective settings and the available feed URLs."""
    logger = get_logger("startup")
    logger.info(
        "Gelbooru RSS Generator",
        version=__version__,
        base_url=app_settings.full_base_url,
        port=app_settings.port,
        api_key="configured" if app_settings.api_key_value else "not configured",
        user_id="configured" if app_settings.gelbooru_user_id else "not configured",
        credentials_sent=app_settings.has_credentials,
        interval_minutes=app_settings.update_interval_minutes,
        feeds=len(feed_service.feeds),
    )
    if not feed_service.feeds:
        logger.warning("No feeds configured", configs_dir=str(app_settings.configs_dir))
    for feed_id, config in feed_service.feeds.items():
        logger.info(
            "Feed available",
            url=f"{app_settings.full_base_url}/rss/{feed_id}",
            artist=config.artist_name,
        )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Turn unhandled errors into a 500 with the error message."""
    get_logger("api").exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {exc}"},
    )


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Create FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager.

        Loads configs, then warms every cache in the background while the
        server accepts requests. The sweep scheduler starts once the warm-up
        is done.
        """
        logger = get_logger("lifespan")
        logger.info("Starting booru-rss application")

        feed_service = build_feed_service(app_settings)
        app.state.settings = app_settings
        app.state.feed_service = feed_service
        log_banner(app_settings, feed_service)

        scheduler = create_scheduler(
            feed_service,
            interval_minutes=app_settings.update_interval_minutes,
        )
        app.state.scheduler = scheduler

        async def warm_up_then_schedule():
            await feed_service.warm_up()
            scheduler.start()
            logger.info("Scheduler started")

        warm_up_task = asyncio.create_task(warm_up_then_schedule())
        app.state.warm_up_task = warm_up_task

        try:
            yield
        finally:
            warm_up_task.cancel()
            with suppress(asyncio.CancelledError):
                await warm_up_task
            if scheduler.running:
                scheduler.shutdown()
            logger.info("booru-rss application stopped")

    app = FastAPI(
        title="booru-rss",
        description="RSS feeds of Gelbooru artist tags",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    app.add_exception_handler(Exception, handle_unexpected_error)
    return app


async def run_cli_once(app_settings: Settings = settings) -> dict:
    """Refresh every feed once via CLI without API server."""
    logger = get_logger("cli")
    logger.info("Running one-time refresh")

    feed_service = build_feed_service(app_settings)
    outcomes = await run_once(feed_service)

    logger.info("Refresh completed", outcomes=outcomes)
    return outcomes


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="booru-rss - Gelbooru artist RSS feeds")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Refresh every feed once and exit (no API server)",
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"API server host (default: {settings.api_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"API server port (default: {settings.port})",
    )
    args = parser.parse_args()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json,
    )

    if args.run_once:
        asyncio.run(run_cli_once())
        return

    # Self links must match the port actually served
    app_settings = settings.model_copy(update={"port": args.port})
    app = create_app(app_settings)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=app_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
