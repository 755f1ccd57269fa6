# src/la_auction/domain/repository.py
"""Reader Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the HTTP implementation.
"""

from typing import Protocol

from src.la_auction.domain.models import AuctionSnapshot


class AuctionReaderProtocol(Protocol):
    async def get_auction(self, auction_id: int) -> AuctionSnapshot: ...
