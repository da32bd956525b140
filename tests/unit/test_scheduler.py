"""Unit tests for blissnexus.engine.scheduler."""

import asyncio

import pytest
import pytest_asyncio

from blissnexus.engine.scheduler import TickScheduler


@pytest_asyncio.fixture
async def scheduler():
    scheduler = TickScheduler(time_scale=0.001)
    scheduler.start()
    yield scheduler
    await scheduler.stop()


def test_time_scale_must_be_positive():
    with pytest.raises(ValueError):
        TickScheduler(time_scale=0)


class TestQueue:
    @pytest.mark.asyncio
    async def test_call_returns_result(self, scheduler):
        assert await scheduler.call(lambda: 41 + 1) == 42

    @pytest.mark.asyncio
    async def test_jobs_run_in_submission_order(self, scheduler):
        seen = []
        for i in range(5):
            scheduler.submit(lambda i=i: seen.append(i))
        await scheduler.idle()
        assert seen == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_worker(self, scheduler):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await scheduler.call(boom)
        assert await scheduler.call(lambda: "still alive") == "still alive"

    @pytest.mark.asyncio
    async def test_post_job_hook(self):
        calls = []
        scheduler = TickScheduler(on_job_done=lambda: calls.append(1))
        scheduler.start()
        try:
            await scheduler.call(lambda: None)
            await scheduler.call(lambda: None)
        finally:
            await scheduler.stop()
        assert calls == [1, 1]

    @pytest.mark.asyncio
    async def test_call_requires_running_scheduler(self):
        with pytest.raises(RuntimeError):
            await TickScheduler().call(lambda: None)


class TestTimers:
    @pytest.mark.asyncio
    async def test_after_is_scaled(self, scheduler):
        fired = asyncio.Event()
        scheduler.after(10, fired.set)  # 10 in-world seconds -> 10ms
        await asyncio.wait_for(fired.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_every_rearms(self, scheduler):
        runs = []
        scheduler.every(5, lambda: runs.append(1), first=0)
        for _ in range(100):
            if len(runs) >= 3:
                break
            await asyncio.sleep(0.01)
        assert len(runs) >= 3

    @pytest.mark.asyncio
    async def test_every_survives_failing_job(self, scheduler):
        runs = []

        def flaky():
            runs.append(1)
            raise ValueError("flaky")

        scheduler.every(lambda: 5, flaky, first=0)
        for _ in range(100):
            if len(runs) >= 2:
                break
            await asyncio.sleep(0.01)
        assert len(runs) >= 2

    @pytest.mark.asyncio
    async def test_stop_cancels_timers(self):
        scheduler = TickScheduler(time_scale=0.001)
        scheduler.start()
        fired = []
        scheduler.after(50, lambda: fired.append(1))
        await scheduler.stop()
        await asyncio.sleep(0.1)
        assert fired == []
        assert not scheduler.running

    def test_clock_stretches_with_time_scale(self):
        scheduler = TickScheduler(time_scale=0.5)
        assert scheduler.clock() >= scheduler._epoch


class TestSpawn:
    @pytest.mark.asyncio
    async def test_spawned_task_submits_mutation(self, scheduler):
        box = []

        async def outside():
            await asyncio.sleep(0)
            scheduler.submit(lambda: box.append("done"))

        task = scheduler.spawn(outside())
        await task
        await scheduler.idle()
        assert box == ["done"]

    @pytest.mark.asyncio
    async def test_failed_task_is_logged(self, scheduler, caplog):
        async def broken():
            raise RuntimeError("no text today")

        task = scheduler.spawn(broken())
        with pytest.raises(RuntimeError):
            await task
        await asyncio.sleep(0)
        assert "Spawned task failed" in caplog.text
