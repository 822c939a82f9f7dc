"""API routes for booru-rss.

Thin handlers translating HTTP requests into FeedService calls.
"""

from datetime import datetime
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from booru_rss import __version__
from booru_rss.config.settings import Settings
from booru_rss.exceptions import BooruRssError, FeedNotFoundError
from booru_rss.models.cache import CacheStatus, RefreshOutcome
from booru_rss.models.feed import FeedConfig
from booru_rss.models.post import PostRecord
from booru_rss.services.feed_service import FeedService

logger = structlog.get_logger()

router = APIRouter(tags=["feeds"])

RSS_MEDIA_TYPE = "application/rss+xml; charset=utf-8"

_templates_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(_templates_dir))

_REFRESH_MESSAGES = {
    RefreshOutcome.UPDATED: "Cache updated successfully",
    RefreshOutcome.IN_PROGRESS: "Update already in progress",
    RefreshOutcome.EMPTY: "No posts found, previous cache kept",
    RefreshOutcome.FAILED: "Upstream fetch failed, previous cache kept",
    RefreshOutcome.ERROR: "Unexpected error, previous cache kept",
}


def get_feed_service(request: Request) -> FeedService:
    """Get the feed service attached to the app on startup."""
    service = getattr(request.app.state, "feed_service", None)
    if service is None:
        raise RuntimeError("Feed service not initialized")
    return service


def get_settings(request: Request) -> Settings:
    """Get the settings attached to the app on startup."""
    app_settings = getattr(request.app.state, "settings", None)
    if app_settings is None:
        raise RuntimeError("Settings not initialized")
    return app_settings


def _require_config(service: FeedService, feed_id: str) -> FeedConfig:
    try:
        return service.get_config(feed_id)
    except FeedNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# Request/Response models


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    feeds: int


class FeedTestResponse(BaseModel):
    """Diagnostic view of one feed plus a fresh upstream probe."""

    feed_id: str
    config: FeedConfig
    cache: CacheStatus
    posts_found: int = Field(..., description="Posts returned by the probe")
    first_post: PostRecord | None = None
    probe_error: str | None = Field(default=None, description="Probe failure, if any")


class RefreshResponse(BaseModel):
    """Result of a forced refresh of one feed."""

    success: bool
    feed_id: str
    status: RefreshOutcome
    message: str
    last_update: datetime | None = None
    next_update: datetime | None = None


class RefreshResult(BaseModel):
    """Outcome of one feed in a bulk refresh."""

    feed_id: str
    status: RefreshOutcome


class RefreshAllResponse(BaseModel):
    """Result of forcing a refresh of every feed."""

    success: bool
    message: str
    results: list[RefreshResult]


# Routes


@router.get("/health", response_model=HealthResponse)
async def health_check(service: FeedService = Depends(get_feed_service)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__, feeds=len(service.feeds))


@router.get(
    "/rss/{feed_id}",
    response_class=Response,
    responses={
        200: {"content": {"application/rss+xml": {}}, "description": "RSS 2.0 document"},
        404: {"description": "Unknown feed or no content available"},
    },
)
async def get_rss(
    feed_id: str,
    service: FeedService = Depends(get_feed_service),
) -> Response:
    """Serve a feed's cached RSS document, refreshing it first if stale."""
    try:
        content = await service.get_content(feed_id)
    except FeedNotFoundError:
        return PlainTextResponse(f"Feed not found for: {feed_id}", status_code=404)

    if content is None:
        return PlainTextResponse(f"No RSS content available for: {feed_id}", status_code=404)

    return Response(
        content=content,
        media_type=RSS_MEDIA_TYPE,
        headers={"Cache-Control": f"public, max-age={service.interval_minutes * 60}"},
    )


@router.get("/test/{feed_id}", response_model=FeedTestResponse)
async def diagnose_feed(
    feed_id: str,
    service: FeedService = Depends(get_feed_service),
) -> FeedTestResponse:
    """Show a feed's config and cache state along with a fresh 5-post probe."""
    config = _require_config(service, feed_id)

    probe_error = None
    try:
        posts = await service.probe(feed_id)
    except BooruRssError as e:
        logger.warning("Probe failed", feed_id=feed_id, error=str(e))
        posts = []
        probe_error = str(e)

    return FeedTestResponse(
        feed_id=feed_id,
        config=config,
        cache=service.cache_status(feed_id),
        posts_found=len(posts),
        first_post=posts[0] if posts else None,
        probe_error=probe_error,
    )


@router.get("/refresh/{feed_id}", response_model=RefreshResponse)
async def refresh_feed(
    feed_id: str,
    service: FeedService = Depends(get_feed_service),
) -> RefreshResponse:
    """Force a refresh cycle for one feed, ignoring its TTL."""
    _require_config(service, feed_id)

    outcome = await service.refresh(feed_id)
    cache = service.cache_status(feed_id)

    return RefreshResponse(
        success=outcome not in (RefreshOutcome.FAILED, RefreshOutcome.ERROR),
        feed_id=feed_id,
        status=outcome,
        message=_REFRESH_MESSAGES[outcome],
        last_update=cache.last_update,
        next_update=cache.next_update,
    )


@router.get("/refresh-all", response_model=RefreshAllResponse)
async def refresh_all_feeds(
    service: FeedService = Depends(get_feed_service),
) -> RefreshAllResponse:
    """Force a refresh cycle for every configured feed."""
    outcomes = await service.refresh_all()

    return RefreshAllResponse(
        success=True,
        message="Update of all feeds completed",
        results=[RefreshResult(feed_id=feed_id, status=outcome) for feed_id, outcome in outcomes],
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def status_page(
    request: Request,
    service: FeedService = Depends(get_feed_service),
    app_settings: Settings = Depends(get_settings),
) -> HTMLResponse:
    """Human-readable status page listing every feed."""
    feeds = [
        {"feed_id": feed_id, "config": config, "cache": service.cache_status(feed_id)}
        for feed_id, config in service.feeds.items()
    ]

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "feeds": feeds,
            "base_url": app_settings.full_base_url,
            "interval_minutes": service.interval_minutes,
            "has_api_key": bool(app_settings.api_key_value),
            "has_user_id": bool(app_settings.gelbooru_user_id),
            "configs_dir": app_settings.configs_dir,
        },
    )
