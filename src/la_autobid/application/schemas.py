"""Pydantic schemas for the auto-bid endpoints."""

from pydantic import Field

from src.la_common.wire import Amount, LenientInstant, WireModel
from src.la_autobid.domain.models import AutoBidConfig


class AutoBidDto(WireModel):
    id: int | None = None
    auction_id: int
    user_id: int
    max_amount: Amount
    is_active: bool = Field(default=True)
    created_at: LenientInstant = None

    def to_domain(self) -> AutoBidConfig:
        return AutoBidConfig(
            auction_id=self.auction_id,
            user_id=self.user_id,
            max_amount=self.max_amount,
            active=self.is_active,
            id=self.id,
            created_at=self.created_at,
        )


class CreateAutoBidRequest(WireModel):
    auction_id: int
    user_id: int
    max_amount: int

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
