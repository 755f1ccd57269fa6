"""AuctionStatusClock: re-derives the auction status on a fixed tick.

Every tick calls ``read_status`` with a fresh ``now``; nothing is decremented
locally, so the countdown cannot drift from wall-clock time. The clock is
owned by one view and must be stopped when that view goes away.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from config.settings import settings
from src.la_auction.domain.models import AuctionTiming, StatusReading
from src.la_auction.domain.status import read_status
from src.la_common.datetime_utils import utc_now
from src.la_common.enums import DerivedStatus
from src.la_common.scheduler import PeriodicTask

logger = logging.getLogger(__name__)

ReadingListener = Callable[[StatusReading], Awaitable[None] | None]


class AuctionStatusClock:
    def __init__(
        self,
        timing: AuctionTiming,
        on_tick: ReadingListener | None = None,
        interval: float | None = None,
        now: Callable[[], datetime] = utc_now,
        name: str = "auction-clock",
    ) -> None:
        self._timing = timing
        self._on_tick = on_tick
        self._now = now
        self._name = name
        self._last_status: DerivedStatus | None = None
        self._task = PeriodicTask(
            self._tick,
            interval or settings.STATUS_TICK_SECONDS,
            name=name,
        )

    @property
    def timing(self) -> AuctionTiming:
        return self._timing

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    @property
    def last_status(self) -> DerivedStatus | None:
        return self._last_status

    def current(self) -> StatusReading:
        return read_status(self._timing, self._now())

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.cancel()

    async def update_timing(self, timing: AuctionTiming) -> StatusReading:
        """Swap in a newer snapshot (push or poll) and publish immediately."""
        self._timing = timing
        return await self._tick()

    async def _tick(self) -> StatusReading:
        reading = self.current()
        if reading.status != self._last_status:
            logger.info(
                "%s: status %s → %s",
                self._name,
                self._last_status.value if self._last_status else "-",
                reading.status.value,
            )
            self._last_status = reading.status
        if self._on_tick is not None:
            result = self._on_tick(reading)
            if inspect.isawaitable(result):
                await result
        return reading
