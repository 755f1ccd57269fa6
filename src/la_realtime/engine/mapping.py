"""Hub invocation → StreamEvent mapping and identity keys.

Identity keys are shared with REST seeding (bid history, message lists,
notification pages) so a record seen through both producers collapses to one
item. Bids carry no id on the wire; their key is built from the fields that
make a bid unique.
"""

import logging
from datetime import datetime
from typing import Any

from src.la_common.datetime_utils import parse_instant, utc_now
from src.la_common.enums import HubStream, StreamKind
from src.la_common.money import to_amount
from src.la_realtime.domain.models import StreamEvent

logger = logging.getLogger(__name__)

BID_PLACED = "BidPlaced"
AUCTION_STATUS_UPDATED = "AuctionStatusUpdated"
AUCTION_CHAT_MESSAGE = "AuctionChatMessageReceived"
MESSAGE_RECEIVED = "MessageReceived"
NOTIFICATION_RECEIVED = "NotificationReceived"

STREAM_TARGETS: dict[HubStream, dict[str, StreamKind]] = {
    HubStream.AUCTION: {
        BID_PLACED: StreamKind.BID,
        AUCTION_STATUS_UPDATED: StreamKind.AUCTION_STATUS,
        AUCTION_CHAT_MESSAGE: StreamKind.MESSAGE,
    },
    HubStream.MESSAGES: {
        MESSAGE_RECEIVED: StreamKind.MESSAGE,
    },
    HubStream.NOTIFICATIONS: {
        NOTIFICATION_RECEIVED: StreamKind.NOTIFICATION,
    },
}


def bid_key(auction_id: Any, bidder_id: Any, amount: Any, bid_time: datetime | None) -> str:
    stamp = bid_time.isoformat() if bid_time else "-"
    return f"bid:{auction_id}:{bidder_id}:{to_amount(amount)}:{stamp}"


def message_key(message_id: Any) -> str:
    return f"message:{message_id}"


def chat_key(message_id: Any) -> str:
    return f"chat:{message_id}"


def notification_key(notification_id: Any) -> str:
    return f"notification:{notification_id}"


def _bid_event(payload: dict[str, Any], received_at: datetime) -> StreamEvent | None:
    placed = payload.get("placedBid")
    if not isinstance(placed, dict) or "auctionId" not in payload:
        return None
    bid_time = parse_instant(placed.get("bidTime"))
    if payload.get("id") is not None:
        key = f"bid:{payload['id']}"
    else:
        key = bid_key(payload["auctionId"], placed.get("bidderId"), placed.get("amount"), bid_time)
    return StreamEvent(key, StreamKind.BID, BID_PLACED, bid_time or received_at, payload)


def _status_event(payload: dict[str, Any], received_at: datetime) -> StreamEvent | None:
    if "auctionId" not in payload or "status" not in payload:
        return None
    stamp = parse_instant(payload.get("timestamp"))
    key = f"status:{payload['auctionId']}:{payload['status']}:{payload.get('timestamp') or '-'}"
    return StreamEvent(
        key, StreamKind.AUCTION_STATUS, AUCTION_STATUS_UPDATED, stamp or received_at, payload
    )


def _identified_event(
    target: str,
    kind: StreamKind,
    payload: dict[str, Any],
    received_at: datetime,
) -> StreamEvent | None:
    if payload.get("id") is None:
        return None
    if kind == StreamKind.NOTIFICATION:
        key = notification_key(payload["id"])
        stamp = parse_instant(payload.get("createdAt"))
    elif target == AUCTION_CHAT_MESSAGE:
        key = chat_key(payload["id"])
        stamp = parse_instant(payload.get("sentAt"))
    else:
        key = message_key(payload["id"])
        stamp = parse_instant(payload.get("sentAt"))
    return StreamEvent(key, kind, target, stamp or received_at, payload)


def to_stream_event(
    stream: HubStream,
    target: str,
    args: list[Any],
    received_at: datetime | None = None,
) -> StreamEvent | None:
    """Map one hub invocation to a StreamEvent, or None if it is not ours/malformed."""
    kind = STREAM_TARGETS.get(stream, {}).get(target)
    if kind is None:
        return None
    payload = args[0] if args else None
    if not isinstance(payload, dict):
        logger.warning("Dropping %s on %s: payload is %r", target, stream.value, payload)
        return None
    received_at = received_at or utc_now()

    if kind == StreamKind.BID:
        event = _bid_event(payload, received_at)
    elif kind == StreamKind.AUCTION_STATUS:
        event = _status_event(payload, received_at)
    else:
        event = _identified_event(target, kind, payload, received_at)

    if event is None:
        logger.warning("Dropping malformed %s on %s", target, stream.value)
    return event
