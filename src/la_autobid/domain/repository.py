# src/la_autobid/domain/repository.py
"""Store Protocol: the backend owns auto-bid configurations.

Unit tests inject an AsyncMock conforming to this Protocol.
"""

from typing import Protocol

from src.la_autobid.domain.models import AutoBidConfig


class AutoBidStoreProtocol(Protocol):
    async def get(self, auction_id: int, user_id: int) -> AutoBidConfig | None: ...

    async def create_or_update(
        self,
        auction_id: int,
        user_id: int,
        max_amount: int,
    ) -> AutoBidConfig: ...

    async def deactivate(self, auction_id: int, user_id: int) -> None: ...
