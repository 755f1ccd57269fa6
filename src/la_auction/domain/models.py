"""Domain models for la_auction: pure dataclasses, no business logic."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from src.la_common.enums import DerivedStatus, ServerStatus


@dataclass(frozen=True)
class AuctionTiming:
    start_time: datetime | None
    end_time: datetime | None  # None only when the wire value was missing/malformed
    paused_at: datetime | None
    server_status: ServerStatus


@dataclass(frozen=True)
class AuctionSnapshot:
    id: int
    timing: AuctionTiming
    current_bid: int
    starting_bid: int
    bid_count: int
    buy_now_price: int | None = None
    seller_id: int | None = None
    title: str | None = None

    def with_timing(self, timing: AuctionTiming) -> "AuctionSnapshot":
        return replace(self, timing=timing)


@dataclass(frozen=True)
class StatusReading:
    """What the countdown shows at one instant."""

    status: DerivedStatus
    target: datetime | None  # start for SCHEDULED, end for ACTIVE
    remaining: timedelta
    label: str

    @property
    def accepts_bids(self) -> bool:
        return self.status == DerivedStatus.ACTIVE
