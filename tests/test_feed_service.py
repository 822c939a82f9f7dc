"""Tests for the feed refresh orchestration."""

import asyncio
import xml.etree.ElementTree as ET

import pytest

from booru_rss.exceptions import FeedNotFoundError, FetchError
from booru_rss.models.cache import RefreshOutcome
from conftest import make_post

pytestmark = pytest.mark.anyio


async def test_refresh_commits_rendered_feed(feed_service, source, cache):
    outcome = await feed_service.refresh("foo")

    assert outcome is RefreshOutcome.UPDATED
    assert source.calls == [("foo", 20)]
    entry = cache.get("foo")
    assert entry.post_count == 2
    assert entry.in_progress is False

    items = ET.fromstring(entry.content.encode("utf-8")).find("channel").findall("item")
    assert [item.findtext("guid") for item in items] == ["gelbooru:foo:1", "gelbooru:foo:2"]
    assert all(item.find("guid").get("isPermaLink") == "false" for item in items)


async def test_refresh_unknown_feed(feed_service, source):
    with pytest.raises(FeedNotFoundError):
        await feed_service.refresh("missing")
    assert source.calls == []


async def test_upstream_failure_without_cache_is_not_available(feed_service, source, cache):
    source.error = FetchError("foo", "connection refused")

    assert await feed_service.refresh("foo") is RefreshOutcome.FAILED
    assert await feed_service.get_content("foo") is None
    assert cache.get("foo").in_progress is False


async def test_upstream_failure_keeps_previous_cache(feed_service, source, cache, clock):
    await feed_service.refresh("foo")
    previous = cache.get("foo")

    clock.advance(minutes=15)
    source.error = FetchError("foo", "HTTP 503")

    assert await feed_service.get_content("foo") == previous.content
    entry = cache.get("foo")
    assert entry.last_update == previous.last_update
    assert entry.in_progress is False


async def test_empty_result_keeps_cache(feed_service, source, cache):
    source.posts = []

    assert await feed_service.refresh("foo") is RefreshOutcome.EMPTY
    assert cache.get("foo").content is None
    assert cache.get("foo").in_progress is False


async def test_unexpected_error_releases_slot(feed_service, source, cache):
    source.error = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await feed_service.refresh("foo")

    assert cache.get("foo").in_progress is False
    assert cache.begin_refresh("foo") is True


async def test_get_content_refreshes_only_when_stale(feed_service, source, clock):
    first = await feed_service.get_content("foo")
    second = await feed_service.get_content("foo")

    assert first is not None
    assert second == first
    assert len(source.calls) == 1

    clock.advance(minutes=10)
    await feed_service.get_content("foo")
    assert len(source.calls) == 2


async def test_get_content_unknown_feed(feed_service):
    with pytest.raises(FeedNotFoundError):
        await feed_service.get_content("missing")


async def test_concurrent_force_refreshes_fetch_once(feed_service, source):
    source.gate = asyncio.Event()
    running = asyncio.create_task(feed_service.refresh("foo"))
    await asyncio.sleep(0)

    second, third = await asyncio.gather(
        feed_service.refresh("foo"),
        feed_service.refresh("foo"),
    )
    assert second is RefreshOutcome.IN_PROGRESS
    assert third is RefreshOutcome.IN_PROGRESS

    source.gate.set()
    assert await running is RefreshOutcome.UPDATED
    assert len(source.calls) == 1


async def test_request_during_refresh_gets_stale_content(feed_service, source, cache, clock):
    await feed_service.refresh("foo")
    stale = cache.get("foo").content
    clock.advance(minutes=30)

    source.gate = asyncio.Event()
    source.posts = [make_post(3)]
    running = asyncio.create_task(feed_service.refresh("foo"))
    await asyncio.sleep(0)

    assert await feed_service.get_content("foo") == stale

    source.gate.set()
    await running
    assert "gelbooru:foo:3" in cache.get("foo").content


async def test_request_during_first_refresh_is_not_available(feed_service, source):
    source.gate = asyncio.Event()
    running = asyncio.create_task(feed_service.refresh("foo"))
    await asyncio.sleep(0)

    assert await feed_service.get_content("foo") is None

    source.gate.set()
    await running


async def test_different_feeds_refresh_concurrently(feed_service, source):
    source.gate = asyncio.Event()
    tasks = [
        asyncio.create_task(feed_service.refresh("foo")),
        asyncio.create_task(feed_service.refresh("bar")),
    ]
    await asyncio.sleep(0)
    assert sorted(tags for tags, _ in source.calls) == ["bar_(artist)", "foo"]

    source.gate.set()
    assert await asyncio.gather(*tasks) == [RefreshOutcome.UPDATED, RefreshOutcome.UPDATED]


async def test_sweep_refreshes_only_stale_feeds(feed_service, source, clock):
    await feed_service.refresh("foo")
    source.calls.clear()

    outcomes = await feed_service.sweep()

    assert outcomes == {"bar": RefreshOutcome.UPDATED}
    assert source.calls == [("bar_(artist)", 20)]

    clock.advance(minutes=10)
    assert set(await feed_service.sweep()) == {"foo", "bar"}


async def test_warm_up_refreshes_every_feed(feed_service, source, cache):
    outcomes = await feed_service.warm_up()

    assert outcomes == {"foo": RefreshOutcome.UPDATED, "bar": RefreshOutcome.UPDATED}
    assert not cache.needs_refresh("foo")
    assert not cache.needs_refresh("bar")


async def test_refresh_all_ignores_ttl(feed_service, source):
    await feed_service.refresh_all()
    results = await feed_service.refresh_all()

    assert results == [("foo", RefreshOutcome.UPDATED), ("bar", RefreshOutcome.UPDATED)]
    assert len(source.calls) == 4


async def test_refresh_all_isolates_unexpected_errors(feed_service, source, cache):
    source.error = RuntimeError("boom")

    results = await feed_service.refresh_all()

    assert results == [("foo", RefreshOutcome.ERROR), ("bar", RefreshOutcome.ERROR)]
    assert cache.get("foo").in_progress is False
    assert cache.get("bar").in_progress is False


async def test_probe_bypasses_cache(feed_service, source, cache):
    posts = await feed_service.probe("bar")

    assert [post.id for post in posts] == [1, 2]
    assert source.calls == [("bar_(artist)", 5)]
    assert cache.get("bar") is None


async def test_cache_status(feed_service, clock):
    status = feed_service.cache_status("foo")
    assert status.has_cache is False
    assert status.needs_update is True
    assert status.next_update is None

    await feed_service.refresh("foo")
    status = feed_service.cache_status("foo")

    assert status.has_cache is True
    assert status.needs_update is False
    assert status.is_updating is False
    assert status.post_count == 2
    assert status.last_update == clock.now
    assert (status.next_update - status.last_update).total_seconds() == 600
