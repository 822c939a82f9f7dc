"""Tests for scheduler wiring."""

from datetime import timedelta

import pytest

from booru_rss.scheduler import SWEEP_JOB_ID, create_scheduler, run_once


def test_sweep_job_configured(feed_service):
    scheduler = create_scheduler(feed_service, interval_minutes=7)

    job = scheduler.get_job(SWEEP_JOB_ID)
    assert job is not None
    assert job.func == feed_service.sweep
    assert job.trigger.interval == timedelta(minutes=7)
    assert job.max_instances == 1


@pytest.mark.anyio
async def test_run_once_reports_outcomes(feed_service):
    assert await run_once(feed_service) == {"foo": "updated", "bar": "updated"}
