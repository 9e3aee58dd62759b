"""Fire-and-forget schedulers for work that outlives the caller's response.

A scheduler is any callable taking a zero-argument coroutine function. The
SWR engine hands revalidation work to one and never awaits it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.background import BackgroundTasks

logger = logging.getLogger(__name__)

BackgroundTask: TypeAlias = "Callable[[], Awaitable[None]]"
Schedule: TypeAlias = "Callable[[BackgroundTask], None]"


class AsyncioScheduler:
    """Runs each task as an ``asyncio.Task`` on the current event loop."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def __call__(self, task: BackgroundTask) -> None:
        running = asyncio.get_running_loop().create_task(task())
        # The loop only keeps weak references to tasks.
        self._tasks.add(running)
        running.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background task failed: %s", exc, exc_info=exc)

    @property
    def pending(self) -> int:
        """Number of tasks not finished yet."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled task, including ones they schedule, is done."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class BackgroundTasksScheduler:
    """Defers tasks to a Starlette ``BackgroundTasks`` run after the response."""

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def __call__(self, task: BackgroundTask) -> None:
        self._background_tasks.add_task(_run_quietly, task)


async def _run_quietly(task: BackgroundTask) -> None:
    # Starlette would otherwise re-raise into the server after the response is sent.
    try:
        await task()
    except Exception:
        logger.warning("Background task failed", exc_info=True)
