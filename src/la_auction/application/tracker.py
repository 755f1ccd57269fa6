"""LiveAuctionTracker: keeps one auction snapshot current from two producers.

Push: BidPlaced / AuctionStatusUpdated events from the auction hub.
Poll: periodic REST re-reads, active only while the push channel is not
connected (push is an enhancement over polling, never the only source).

Bid pushes are applied only when they move the auction forward (more bids or
a higher price), so duplicates and late deliveries cannot roll the price back.
Every timing change is forwarded to the status clock.
"""

import logging
from collections.abc import Callable
from dataclasses import replace

from pydantic import ValidationError as SchemaError

from config.settings import settings
from src.la_auction.application.clock import AuctionStatusClock, ReadingListener
from src.la_auction.application.schemas import AuctionStatusUpdatedPayload, BidPlacedPayload
from src.la_auction.domain.models import AuctionSnapshot, AuctionTiming
from src.la_auction.domain.repository import AuctionReaderProtocol
from src.la_common.datetime_utils import utc_now
from src.la_common.enums import ConnectionState, ServerStatus, StreamKind
from src.la_common.errors import AppError
from src.la_common.scheduler import PeriodicTask
from src.la_realtime.domain.models import StreamEvent
from src.la_realtime.engine.channel import RealtimeChannelManager

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[AuctionSnapshot], None]


class LiveAuctionTracker:
    def __init__(
        self,
        auction_id: int,
        reader: AuctionReaderProtocol,
        on_reading: ReadingListener | None = None,
        poll_interval: float | None = None,
        tick_interval: float | None = None,
    ) -> None:
        self.auction_id = auction_id
        self._reader = reader
        self._on_reading = on_reading
        self._tick_interval = tick_interval
        self._snapshot: AuctionSnapshot | None = None
        self._clock: AuctionStatusClock | None = None
        self._channel: RealtimeChannelManager | None = None
        self._listeners: list[SnapshotListener] = []
        self._epoch = 0
        self._poller = PeriodicTask(
            self._poll,
            poll_interval or settings.SNAPSHOT_POLL_SECONDS,
            name=f"auction-{auction_id}-poll",
            run_immediately=False,
        )

    @property
    def snapshot(self) -> AuctionSnapshot | None:
        return self._snapshot

    @property
    def clock(self) -> AuctionStatusClock | None:
        return self._clock

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def _publish(self) -> None:
        assert self._snapshot is not None
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for auction %s", self.auction_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, channel: RealtimeChannelManager | None = None) -> AuctionSnapshot:
        """Read the REST snapshot, start the status clock and the poll fallback."""
        epoch = self._epoch
        snapshot = await self._reader.get_auction(self.auction_id)
        if epoch != self._epoch:
            return snapshot
        self._snapshot = snapshot
        self._clock = AuctionStatusClock(
            snapshot.timing,
            on_tick=self._on_reading,
            interval=self._tick_interval,
            name=f"auction-{self.auction_id}-clock",
        )
        self._clock.start()
        if channel is not None:
            self.attach(channel)
        self._poller.start()
        self._publish()
        return snapshot

    async def close(self) -> None:
        """Stop timers and drop any in-flight responses. Safe to repeat."""
        self._epoch += 1
        if self._channel is not None:
            self._channel.off(StreamKind.BID, self.handle_event)
            self._channel.off(StreamKind.AUCTION_STATUS, self.handle_event)
            self._channel = None
        await self._poller.cancel()
        if self._clock is not None:
            await self._clock.stop()

    def attach(self, channel: RealtimeChannelManager) -> None:
        self._channel = channel
        channel.on(StreamKind.BID, self.handle_event)
        channel.on(StreamKind.AUCTION_STATUS, self.handle_event)

    def _push_available(self) -> bool:
        return self._channel is not None and self._channel.state == ConnectionState.CONNECTED

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    async def _poll(self) -> None:
        if self._push_available():
            return
        try:
            await self.refresh()
        except AppError as exc:
            logger.warning("Polling auction %s failed: %s", self.auction_id, exc.message)

    async def refresh(self) -> AuctionSnapshot | None:
        """Re-read the REST snapshot; stale responses after close are dropped."""
        epoch = self._epoch
        fresh = await self._reader.get_auction(self.auction_id)
        if epoch != self._epoch:
            return None
        current = self._snapshot
        if current is not None and fresh.bid_count < current.bid_count:
            # Push is ahead of this read; keep bid fields, take the timing
            fresh = replace(
                current,
                timing=fresh.timing,
            )
        await self._set_snapshot(fresh)
        return fresh

    async def handle_event(self, event: StreamEvent) -> bool:
        try:
            if event.kind == StreamKind.BID:
                return await self.apply_bid(BidPlacedPayload.model_validate(event.payload))
            if event.kind == StreamKind.AUCTION_STATUS:
                return await self.apply_status(
                    AuctionStatusUpdatedPayload.model_validate(event.payload)
                )
        except SchemaError:
            logger.warning("Ignoring malformed %s for auction %s", event.name, self.auction_id)
        return False

    async def apply_bid(self, payload: BidPlacedPayload) -> bool:
        current = self._snapshot
        if current is None or payload.auction_id != self.auction_id:
            return False
        if payload.bid_count <= current.bid_count and payload.current_bid <= current.current_bid:
            return False
        await self._set_snapshot(
            replace(
                current,
                current_bid=max(payload.current_bid, current.current_bid),
                bid_count=max(payload.bid_count, current.bid_count),
            )
        )
        return True

    async def apply_status(self, payload: AuctionStatusUpdatedPayload) -> bool:
        current = self._snapshot
        if current is None or payload.auction_id != self.auction_id:
            return False
        if payload.status == current.timing.server_status:
            return False
        paused_at = current.timing.paused_at
        if payload.status == ServerStatus.PAUSED:
            paused_at = payload.timestamp or utc_now()
        elif current.timing.server_status == ServerStatus.PAUSED:
            paused_at = None
        timing = AuctionTiming(
            start_time=current.timing.start_time,
            end_time=current.timing.end_time,
            paused_at=paused_at,
            server_status=payload.status,
        )
        snapshot = current.with_timing(timing)
        if payload.final_price is not None:
            snapshot = replace(snapshot, current_bid=max(payload.final_price, current.current_bid))
        await self._set_snapshot(snapshot)
        return True

    async def _set_snapshot(self, snapshot: AuctionSnapshot) -> None:
        changed_timing = self._snapshot is None or snapshot.timing != self._snapshot.timing
        self._snapshot = snapshot
        if changed_timing and self._clock is not None:
            await self._clock.update_timing(snapshot.timing)
        self._publish()
