"""In-process periodic jobs started by the application lifespan."""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from src.commons.telemetry import get_logger

logger = get_logger(__name__)


@dataclass
class PeriodicJob:
    """A coroutine factory run every ``interval_seconds``."""

    name: str
    interval_seconds: float
    run: Callable[[], Awaitable[Any]]
    run_on_start: bool = False


class PeriodicJobRunner:
    """Runs each registered job in its own asyncio loop.

    A failing run is logged and the loop keeps its schedule; jobs never
    overlap with themselves.
    """

    def __init__(self) -> None:
        self._jobs: list[PeriodicJob] = []
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def add_job(self, job: PeriodicJob) -> None:
        self._jobs.append(job)

    def start(self) -> None:
        """Start one loop per job. Calling start twice is a no-op."""
        if self._tasks:
            return
        for job in self._jobs:
            self._tasks[job.name] = asyncio.create_task(
                self._loop(job), name=f"periodic:{job.name}"
            )
            logger.info(
                f"Started periodic job {job.name}",
                extra={"interval_seconds": job.interval_seconds},
            )

    async def stop(self) -> None:
        """Cancel every loop and wait for them to finish."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        logger.info("Stopped periodic jobs")

    async def _loop(self, job: PeriodicJob) -> None:
        if not job.run_on_start:
            await asyncio.sleep(job.interval_seconds)
        while True:
            try:
                await job.run()
            except Exception as e:
                logger.error(
                    f"Periodic job {job.name} failed",
                    extra={"job": job.name, "error": str(e)},
                )
            await asyncio.sleep(job.interval_seconds)
