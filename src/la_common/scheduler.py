"""Cancellable periodic task owned by a component lifecycle.

Ticks are scheduled against the loop's monotonic clock at fixed offsets from
the start time, so a slow callback delays one tick but does not shift every
later tick. Callers re-derive their state inside the callback; nothing here
counts down.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None] | None]


class PeriodicTask:
    def __init__(
        self,
        callback: TickCallback,
        interval: float,
        name: str = "periodic",
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._run_immediately = run_immediately
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    async def cancel(self) -> None:
        """Stop ticking. Safe to call repeatedly and before ``start``."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        tick = 0 if self._run_immediately else 1
        while True:
            delay = started + tick * self._interval - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Tick of %s failed", self._name)
            # Skip ticks missed while the callback ran long
            elapsed = loop.time() - started
            tick = max(tick + 1, int(elapsed // self._interval) + 1)
