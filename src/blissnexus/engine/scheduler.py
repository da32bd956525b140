"""Tick scheduler: the only driver of time in a world session.

The scheduler is an asyncio actor. Timers, autonomous decisions, whispers,
commands and resets all become synchronous jobs on one queue, and a single
worker runs them one at a time, so no job ever observes a half-applied
mutation.

Work that waits on something external (text completion) is spawned as a
task outside the queue and submits its mutation as a job once it resolves.

Usage:
    scheduler = TickScheduler(time_scale=0.1)
    scheduler.start()
    scheduler.every(45, lambda: resource_tick(store))
    scheduler.after(8, lambda: store.nuke_impact("rex", "sage"))
    result = await scheduler.call(lambda: store.declare_war("rex", "sage"))
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from blissnexus.engine.store import Job

logger = logging.getLogger(__name__)

Interval = float | Callable[[], float]


class TickScheduler:
    """Serialized job queue with one-shot and repeating timers.

    Attributes:
        time_scale: Multiplier applied to every delay (0.1 runs ten times faster)
        on_job_done: Optional hook run after every job (used to flush notices)
    """

    def __init__(self, time_scale: float = 1.0, on_job_done: Callable[[], None] | None = None) -> None:
        if time_scale <= 0:
            raise ValueError(f"time_scale must be positive, got {time_scale}")
        self.time_scale = time_scale
        self.on_job_done = on_job_done
        self._epoch = time.time()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._timers: set[asyncio.TimerHandle] = set()
        self._tasks: set[asyncio.Task] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def clock(self) -> float:
        """Wall-clock seconds stretched by time_scale, for in-world deadlines."""
        return self._epoch + (time.time() - self._epoch) / self.time_scale

    def start(self) -> None:
        """Start the worker on the running event loop."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._running = True
        self._worker = self._loop.create_task(self._drain())
        logger.info(f"Scheduler started (time_scale={self.time_scale})")

    async def stop(self) -> None:
        """Cancel timers, spawned tasks and the worker."""
        if not self._running:
            return
        self._running = False
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        pending = [*self._tasks, self._worker]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        logger.info("Scheduler stopped")

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def submit(self, job: Job) -> None:
        """Enqueue a job; it runs after everything already queued."""
        if not self._running:
            logger.debug("Scheduler not running, job dropped")
            return
        self._queue.put_nowait((job, None))

    async def call(self, job: Job) -> Any:
        """Enqueue a job and wait for its result."""
        if not self._running:
            raise RuntimeError("Scheduler is not running")
        future = self._loop.create_future()
        self._queue.put_nowait((job, future))
        return await future

    async def idle(self) -> None:
        """Wait until every queued job has run."""
        if self._queue is not None:
            await self._queue.join()

    async def _drain(self) -> None:
        while True:
            job, future = await self._queue.get()
            try:
                result = job()
            except Exception as exc:
                logger.exception(f"Scheduled job {getattr(job, '__name__', job)!r} failed")
                if future is not None and not future.done():
                    future.set_exception(exc)
            else:
                if future is not None and not future.done():
                    future.set_result(result)
            finally:
                self._after_job()
                self._queue.task_done()

    def _after_job(self) -> None:
        if self.on_job_done is None:
            return
        try:
            self.on_job_done()
        except Exception:
            logger.exception("Post-job hook failed")

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def after(self, delay: float, job: Job) -> asyncio.TimerHandle | None:
        """Enqueue ``job`` once ``delay`` (scaled) seconds have passed."""
        if not self._running:
            logger.debug("Scheduler not running, timer dropped")
            return None
        handle: asyncio.TimerHandle | None = None

        def fire() -> None:
            self._timers.discard(handle)
            self.submit(job)

        handle = self._loop.call_later(max(0.0, delay * self.time_scale), fire)
        self._timers.add(handle)
        return handle

    def every(self, interval: Interval, job: Job, first: float | None = None) -> None:
        """Run ``job`` repeatedly.

        Args:
            interval: Seconds between runs, or a callable returning the next
                delay (for jittered or tension-dependent periods)
            job: Synchronous job
            first: Delay before the first run; defaults to one interval
        """

        def next_delay() -> float:
            return interval() if callable(interval) else interval

        def run_and_rearm() -> Any:
            try:
                return job()
            finally:
                self.after(next_delay(), run_and_rearm)

        run_and_rearm.__name__ = getattr(job, "__name__", "periodic")
        self.after(next_delay() if first is None else first, run_and_rearm)

    # -------------------------------------------------------------------------
    # External work
    # -------------------------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task | None:
        """Run a coroutine outside the queue (it must submit its own mutations)."""
        if not self._running:
            coro.close()
            return None
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Spawned task failed: {exc!r}", exc_info=exc)
