import asyncio
import logging
from typing import Callable, Coroutine, List

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Manages the scheduling and execution of periodic async tasks using asyncio.

    Each job runs in its own task on its own interval. A failing run is
    logged and the loop carries on with the next tick. `stop()` signals the
    loops to exit between ticks, so a run in progress is allowed to finish.
    """

    def __init__(self):
        self.tasks: List[asyncio.Task] = []
        self._stopping = asyncio.Event()

    async def _run_periodically(self, interval_seconds: float, job_func: Callable[[], Coroutine], name: str):
        """Internal loop to run a job periodically."""
        try:
            while not self._stopping.is_set():
                try:
                    await job_func()
                except Exception as e:
                    logger.error(f"Error in scheduled job '{name}': {e}", exc_info=True)

                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=interval_seconds)
                except asyncio.TimeoutError:
                    pass
            logger.info(f"Job '{name}' stopped.")
        except asyncio.CancelledError:
            logger.info(f"Job '{name}' cancelled.")
            raise

    def add_job(self, job_func: Callable[[], Coroutine], interval_seconds: float, name: str = None) -> asyncio.Task:
        """
        Adds a new async job running every `interval_seconds`.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Invalid interval: {interval_seconds}. It must be positive.")
        name = name or getattr(job_func, "__name__", "job")
        task = asyncio.create_task(self._run_periodically(interval_seconds, job_func, name), name=name)
        self.tasks.append(task)
        logger.info(f"Scheduled job '{name}' to run every {interval_seconds}s.")
        return task

    async def stop(self):
        """Asks every job to exit after its current tick and waits for them."""
        logger.info("Stopping scheduler...")
        self._stopping.set()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        self._stopping = asyncio.Event()
