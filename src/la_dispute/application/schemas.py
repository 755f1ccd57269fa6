"""Pydantic schemas for dispute and message payloads."""

from pydantic import Field

from src.la_common.wire import LenientInstant, WireModel
from src.la_dispute.domain.models import ChatMessage, Dispute


class DisputeDto(WireModel):
    id: int
    buyer_id: int
    seller_id: int
    created_at: LenientInstant = None
    resolved_by: int | None = None
    status: str | None = None
    auction_id: int | None = None

    def to_domain(self) -> Dispute | None:
        # Without a creation instant the grace filter has nothing to anchor on
        if self.created_at is None:
            return None
        return Dispute(
            id=self.id,
            buyer_id=self.buyer_id,
            seller_id=self.seller_id,
            created_at=self.created_at,
            resolved_by=self.resolved_by,
            status=self.status,
            auction_id=self.auction_id,
        )


class MessageDto(WireModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str = ""
    sent_at: LenientInstant = None
    dispute_id: int | None = None
    auction_id: int | None = None
    is_read: bool = Field(default=False)

    def to_domain(self) -> ChatMessage | None:
        if self.sent_at is None:
            return None
        return ChatMessage(
            id=self.id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            content=self.content,
            sent_at=self.sent_at,
            dispute_id=self.dispute_id,
            auction_id=self.auction_id,
        )


class UserDto(WireModel):
    id: int
    email: str | None = None
