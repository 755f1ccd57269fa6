"""View-ready projections of the reconciled bid feed: price chart points and
bid ticker entries, plus conversion of REST bid history into the same events
the hub pushes so both producers share identity keys.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from src.la_common.datetime_utils import parse_instant
from src.la_common.enums import HubStream
from src.la_common.money import format_compact, to_amount
from src.la_realtime.domain.models import StreamEvent
from src.la_realtime.engine.mapping import BID_PLACED, to_stream_event
from src.la_sync.domain.reconcile import FeedItem


class PricePoint(BaseModel):
    sequence: int
    price: int
    label: str
    bidder: str | None = None
    time_label: str | None = None


class TickerBid(BaseModel):
    id: str
    bidder: str
    amount: int
    amount_display: str
    bid_time: datetime
    is_winning: bool = False


def _placed(item: FeedItem) -> dict[str, Any]:
    placed = item.payload.get("placedBid")
    return placed if isinstance(placed, dict) else {}


def _amount(item: FeedItem) -> int:
    placed = _placed(item)
    amount = to_amount(placed.get("amount"))
    if amount is None:
        amount = to_amount(item.payload.get("currentBid"))
    return amount or 0


def _bidder(item: FeedItem) -> str:
    placed = _placed(item)
    name = placed.get("bidderName")
    if isinstance(name, str) and name.strip():
        return name.strip()
    bidder_id = placed.get("bidderId")
    return f"Bidder #{bidder_id}" if bidder_id is not None else "Unknown bidder"


def price_points(items: Sequence[FeedItem], starting_bid: int | None = None) -> list[PricePoint]:
    """Chart series in bid order: one point per reconciled bid.

    With no bids yet the series is a single starting-price point.
    """
    if not items and starting_bid is not None:
        return [PricePoint(sequence=0, price=starting_bid, label="Starting price")]
    return [
        PricePoint(
            sequence=index,
            price=_amount(item),
            label=f"Bid #{index}",
            bidder=_bidder(item),
            time_label=f"{item.occurred_at:%H:%M:%S}",
        )
        for index, item in enumerate(items, start=1)
    ]


def ticker_items(items: Sequence[FeedItem], limit: int = 20) -> list[TickerBid]:
    """Newest bids first; the highest amount is flagged as winning."""
    recent = list(reversed(items))[:limit]
    if not recent:
        return []
    top = max(range(len(recent)), key=lambda i: (_amount(recent[i]), -i))
    return [
        TickerBid(
            id=item.id,
            bidder=_bidder(item),
            amount=_amount(item),
            amount_display=format_compact(_amount(item)),
            bid_time=item.occurred_at,
            is_winning=index == top,
        )
        for index, item in enumerate(recent)
    ]


def bid_history_events(auction_id: int, bids: Iterable[dict[str, Any]]) -> list[StreamEvent]:
    """Turn REST bid history rows into BidPlaced events (same identity keys)."""
    events = []
    for row in bids:
        bid_time = parse_instant(row.get("bidTime"))
        payload = {
            "auctionId": auction_id,
            "currentBid": row.get("amount"),
            "placedBid": {
                "bidderId": row.get("bidderId"),
                "bidderName": row.get("bidderName"),
                "amount": row.get("amount"),
                "bidTime": bid_time.isoformat() if bid_time else row.get("bidTime"),
            },
        }
        event = to_stream_event(HubStream.AUCTION, BID_PLACED, [payload])
        if event is not None:
            events.append(event)
    return events
