"""HTTP implementation of AuctionReaderProtocol."""

from src.la_auction.application.schemas import AuctionDto
from src.la_auction.domain.models import AuctionSnapshot
from src.la_common.errors import NotFoundError
from src.la_common.http_client import RemoteClient


class AuctionHttpReader:
    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    async def get_auction(self, auction_id: int) -> AuctionSnapshot:
        data = await self._client.get_json(f"/api/Auctions/{auction_id}", allow_not_found=True)
        if data is None:
            raise NotFoundError(f"auction {auction_id}")
        return AuctionDto.model_validate(data).to_domain()
