# Kozmetik ilerleme çubuğu: gerçek iş ilerlemesiyle ilgisi yoktur

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

PROGRESS_MAX = 100


def log_task_failure(task: asyncio.Task) -> None:
    """Done-callback: surface exceptions of fire-and-forget tasks in the log."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("background task %s failed", task.get_name(), exc_info=exc)


class ProgressSynthesizer:
    """Counts 0 -> 100, one step per `interval` seconds, then holds at 100.

    The counter runs as its own asyncio task next to the poll loop. `stop()`
    releases that task and is safe to call any number of times.
    """

    def __init__(self, interval: float = 0.75, on_change: Optional[Callable[[int], None]] = None):
        self.interval = interval
        self._on_change = on_change
        self._value = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def value(self) -> int:
        return self._value

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        self._set(0)
        self._task = asyncio.get_running_loop().create_task(self._tick())
        self._task.add_done_callback(log_task_failure)

    def stop(self) -> bool:
        """Cancel the timer. Returns True only on the call that released it."""
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def complete(self) -> None:
        self.stop()
        self._set(PROGRESS_MAX)

    async def _tick(self) -> None:
        while self._value < PROGRESS_MAX:
            await asyncio.sleep(self.interval)
            self._set(self._value + 1)
        logger.debug("progress reached %d, holding", PROGRESS_MAX)

    def _set(self, value: int) -> None:
        self._value = value
        if self._on_change is not None:
            self._on_change(value)
