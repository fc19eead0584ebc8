"""
presence/scheduler.py
Fire-and-forget delayed callbacks on the running event loop.
Pending callbacks are tracked so they can be cancelled on shutdown.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

log = logging.getLogger("greeter.scheduler")


class TaskScheduler:
    """Runs coroutine callbacks after a delay. Overlapping calls are not coalesced."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def call_later(self, delay: float, callback: Callable[[], Awaitable[Any]],
                   name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._run(delay, callback, name or getattr(callback, "__name__", "callback")),
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, delay: float, callback: Callable[[], Awaitable[Any]], name: str) -> None:
        await asyncio.sleep(delay)
        try:
            await callback()
        except Exception as e:
            # A failed check must not take the loop down; the next trigger re-arms it.
            log.exception("Scheduled %s failed: %s", name, e)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def cancel_all(self) -> int:
        """Cancel every pending callback. Returns how many were cancelled."""
        count = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                count += 1
        self._tasks.clear()
        return count
