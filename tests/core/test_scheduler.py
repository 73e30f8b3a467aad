# tests/core/test_scheduler.py

import asyncio
from unittest.mock import MagicMock

import pytest

from finkube.core.scheduler import Scheduler


@pytest.mark.asyncio
async def test_add_job_schedules_correctly():
    """
    Tests that the Scheduler's add_job method correctly adds a task to the asyncio loop.
    """
    scheduler = Scheduler()
    mock_job = MagicMock()

    async def async_job():
        mock_job()

    # Act
    scheduler.add_job(async_job, interval_seconds=3600, name="hourly")

    # Assert
    assert len(scheduler.tasks) == 1
    task = scheduler.tasks[0]
    assert not task.done()

    await scheduler.stop()
    assert task.done()
    assert scheduler.tasks == []


def test_invalid_intervals_are_rejected():
    """Non-positive intervals raise ValueError before any task is created."""
    scheduler = Scheduler()

    async def async_job():
        pass

    with pytest.raises(ValueError):
        scheduler.add_job(async_job, interval_seconds=0)
    assert scheduler.tasks == []


@pytest.mark.asyncio
async def test_failing_job_keeps_running():
    """A job raising on one tick still runs on the following ticks."""
    scheduler = Scheduler()
    calls = []
    third_call = asyncio.Event()

    async def flaky_job():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        if len(calls) >= 3:
            third_call.set()

    scheduler.add_job(flaky_job, interval_seconds=0.01, name="flaky")
    await asyncio.wait_for(third_call.wait(), timeout=2)
    await scheduler.stop()

    assert len(calls) >= 3


@pytest.mark.asyncio
async def test_stop_lets_current_tick_finish():
    """Stopping waits for an in-flight tick instead of cancelling it."""
    scheduler = Scheduler()
    started = asyncio.Event()
    finished = []

    async def slow_job():
        started.set()
        await asyncio.sleep(0.05)
        finished.append(True)

    scheduler.add_job(slow_job, interval_seconds=3600, name="slow")
    await started.wait()
    await scheduler.stop()

    assert finished == [True]
