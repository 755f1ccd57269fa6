"""Pydantic schemas for auction payloads (REST snapshot and hub pushes).

Instants are parsed leniently: a malformed timestamp becomes None, and a None
end time makes the status clock report ENDED rather than fail.
"""

from pydantic import AliasChoices, Field

from src.la_auction.domain.models import AuctionSnapshot, AuctionTiming
from src.la_common.enums import ServerStatus
from src.la_common.wire import Amount, LenientInstant, OptionalAmount, WireModel, WireStatus


class AuctionDto(WireModel):
    id: int
    title: str | None = Field(default=None, validation_alias=AliasChoices("title", "itemTitle"))
    start_time: LenientInstant = None
    end_time: LenientInstant = None
    paused_at: LenientInstant = None
    status: WireStatus = ServerStatus.UNKNOWN
    current_bid: Amount = 0
    starting_bid: Amount = 0
    bid_count: Amount = 0
    buy_now_price: OptionalAmount = None
    seller_id: int | None = None

    def to_domain(self) -> AuctionSnapshot:
        return AuctionSnapshot(
            id=self.id,
            timing=AuctionTiming(
                start_time=self.start_time,
                end_time=self.end_time,
                paused_at=self.paused_at,
                server_status=self.status,
            ),
            # A fresh auction reports currentBid 0 until the first bid lands
            current_bid=self.current_bid or self.starting_bid,
            starting_bid=self.starting_bid,
            bid_count=self.bid_count,
            buy_now_price=self.buy_now_price,
            seller_id=self.seller_id,
            title=self.title,
        )


class PlacedBidOut(WireModel):
    bidder_id: int
    amount: Amount
    bid_time: LenientInstant = None
    bidder_name: str | None = None


class BidPlacedPayload(WireModel):
    auction_id: int
    current_bid: Amount
    bid_count: Amount = 0
    placed_bid: PlacedBidOut
    id: int | str | None = None


class AuctionStatusUpdatedPayload(WireModel):
    auction_id: int
    status: WireStatus
    winner_id: int | None = None
    final_price: OptionalAmount = None
    timestamp: LenientInstant = None
