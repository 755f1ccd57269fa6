"""AutoBid domain model: pure dataclass, no HTTP dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AutoBidConfig:
    auction_id: int
    user_id: int
    max_amount: int
    active: bool
    id: int | None = None
    created_at: datetime | None = None
