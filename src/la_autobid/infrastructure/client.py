"""HTTP implementation of AutoBidStoreProtocol."""

from src.la_autobid.application.schemas import AutoBidDto, CreateAutoBidRequest
from src.la_autobid.domain.models import AutoBidConfig
from src.la_common.http_client import RemoteClient


class AutoBidHttpStore:
    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    @staticmethod
    def _path(auction_id: int, user_id: int) -> str:
        return f"/api/autobids/auction/{auction_id}/user/{user_id}"

    async def get(self, auction_id: int, user_id: int) -> AutoBidConfig | None:
        data = await self._client.get_json(self._path(auction_id, user_id), allow_not_found=True)
        if data is None:
            return None
        return AutoBidDto.model_validate(data).to_domain()

    async def create_or_update(
        self,
        auction_id: int,
        user_id: int,
        max_amount: int,
    ) -> AutoBidConfig:
        body = CreateAutoBidRequest(
            auction_id=auction_id, user_id=user_id, max_amount=max_amount
        ).to_wire()
        data = await self._client.post_json("/api/autobids", body)
        return AutoBidDto.model_validate(data).to_domain()

    async def deactivate(self, auction_id: int, user_id: int) -> None:
        # Already gone counts as deactivated
        await self._client.delete(self._path(auction_id, user_id), allow_not_found=True)
