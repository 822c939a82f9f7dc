"""Test configuration and fixtures."""

import asyncio
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from booru_rss.models.feed import FeedConfig, FeedRegistry
from booru_rss.models.post import PostRecord
from booru_rss.services.feed_service import FeedService
from booru_rss.sources.base import DEFAULT_LIMIT
from booru_rss.storage.cache import FeedCacheStore

BASE_URL = "http://localhost:3000"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSource:
    """PostSource double recording every call.

    Set ``error`` to make fetches raise, ``gate`` to hold fetches open
    until the test sets it.
    """

    def __init__(self, posts: list[PostRecord] | None = None):
        self.posts = posts or []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, int]] = []

    async def fetch_posts(self, tags: str, limit: int = DEFAULT_LIMIT) -> list[PostRecord]:
        self.calls.append((tags, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.posts)


def make_post(post_id: int, **overrides) -> PostRecord:
    data = {
        "id": post_id,
        "created_at": "Sat Oct 18 12:34:56 -0500 2025",
        "file_url": f"https://img.gelbooru.com/images/{post_id}.jpg",
        "tags": "1girl  solo\tlong_hair ",
        "title": "",
    }
    data.update(overrides)
    return PostRecord.model_validate(data)


@pytest.fixture
def temp_configs_dir():
    """Create a temporary configs directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "configs"


@pytest.fixture
def foo_config():
    return FeedConfig.model_validate({"feed_id": "foo", "GELBOORU_TAG": "foo", "ARTIST_NAME": "Foo"})


@pytest.fixture
def registry(foo_config):
    bar = FeedConfig.model_validate(
        {
            "feed_id": "bar",
            "GELBOORU_TAG": "bar_(artist)",
            "ICON_URL": "https://example.com/bar.png",
        }
    )
    return FeedRegistry([foo_config, bar])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return FeedCacheStore(interval_minutes=10, clock=clock)


@pytest.fixture
def source():
    return FakeSource([make_post(1), make_post(2)])


@pytest.fixture
def feed_service(registry, source, cache):
    return FeedService(
        feeds=registry,
        source=source,
        cache=cache,
        base_url=BASE_URL,
        interval_minutes=10,
    )


@pytest.fixture
def sample_gelbooru_response():
    """Sample Gelbooru DAPI JSON response."""
    return {
        "@attributes": {"limit": 20, "offset": 0, "count": 2},
        "post": [
            {
                "id": 11,
                "created_at": "Sat Oct 18 12:34:56 -0500 2025",
                "score": 3,
                "width": 1200,
                "height": 1600,
                "md5": "abc",
                "file_url": "https://img.gelbooru.com/images/ab/cd/abc.jpg",
                "tags": "1girl solo  highres",
                "title": "",
                "rating": "general",
            },
            {
                "id": 10,
                "created_at": "Fri Oct 17 08:00:00 +0000 2025",
                "file_url": "https://img.gelbooru.com/images/ef/gh/def.png",
                "tags": "landscape",
                "title": "Sunset",
            },
        ],
    }
