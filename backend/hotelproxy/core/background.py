"""
Fire-and-forget task runner.

Cache backfills are spawned here instead of being awaited by the request
that produced them. Failures are logged, never raised to the caller.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger("HotelProxy-Background")

CompletionHook = Callable[[str, Optional[BaseException]], None]


class BackgroundWriter:
    """Runs coroutines as detached asyncio tasks and tracks them until done."""

    def __init__(self, on_complete: Optional[CompletionHook] = None):
        self.on_complete = on_complete
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, label: str = "write") -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, label))
        return task

    def _finished(self, task: asyncio.Task, label: str) -> None:
        self._tasks.discard(task)

        error: Optional[BaseException] = None
        if task.cancelled():
            error = asyncio.CancelledError()
            logger.warning(f"⚠️ Background task cancelled: {label}")
        elif task.exception() is not None:
            error = task.exception()
            logger.error(f"❌ Background task failed: {label}: {error}")

        if self.on_complete:
            try:
                self.on_complete(label, error)
            except Exception as e:
                logger.warning(f"⚠️ Completion hook raised for {label}: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every task spawned so far (including ones spawned meanwhile)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
