"""Domain models for la_dispute: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Dispute:
    id: int
    buyer_id: int
    seller_id: int
    created_at: datetime
    resolved_by: int | None = None
    status: str | None = None
    auction_id: int | None = None


@dataclass(frozen=True)
class ChatMessage:
    id: int
    sender_id: int
    receiver_id: int
    content: str
    sent_at: datetime
    dispute_id: int | None = None
    auction_id: int | None = None


@dataclass(frozen=True)
class Participants:
    """The three parties of a dispute conversation."""

    buyer_id: int
    seller_id: int
    admin_id: int

    @property
    def ids(self) -> frozenset[int]:
        return frozenset((self.buyer_id, self.seller_id, self.admin_id))

    def pairs(self) -> list[tuple[int, int]]:
        """Every unordered pair of distinct participants."""
        ordered = sorted(self.ids)
        return [
            (a, b)
            for index, a in enumerate(ordered)
            for b in ordered[index + 1:]
        ]


ConversationThread = tuple[ChatMessage, ...]
