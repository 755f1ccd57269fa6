"""HTTP implementations of the dispute reader Protocols."""

import logging
from urllib.parse import quote

from pydantic import ValidationError as SchemaError

from src.la_common.errors import DataIntegrityWarning, NotFoundError
from src.la_common.http_client import RemoteClient
from src.la_dispute.application.schemas import DisputeDto, MessageDto, UserDto
from src.la_dispute.domain.models import ChatMessage, Dispute

logger = logging.getLogger(__name__)


class DisputeHttpReader:
    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    async def get_dispute(self, dispute_id: int) -> Dispute:
        data = await self._client.get_json(f"/api/Dispute/{dispute_id}", allow_not_found=True)
        if data is None:
            raise NotFoundError(f"dispute {dispute_id}")
        dispute = DisputeDto.model_validate(data).to_domain()
        if dispute is None:
            raise DataIntegrityWarning(f"dispute {dispute_id} has no createdAt")
        return dispute


class ConversationHttpReader:
    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    async def get_conversation(
        self,
        user_a: int,
        user_b: int,
        auction_id: int | None = None,
    ) -> list[ChatMessage]:
        params: dict[str, int] = {"userId1": user_a, "userId2": user_b}
        if auction_id is not None:
            params["auctionId"] = auction_id
        data = await self._client.get_json("/api/Messages/conversation", params=params)
        messages: list[ChatMessage] = []
        for row in data or []:
            try:
                message = MessageDto.model_validate(row).to_domain()
            except SchemaError:
                message = None
            if message is None:
                logger.warning("Skipping malformed message in conversation %d/%d", user_a, user_b)
                continue
            messages.append(message)
        return messages


class UserHttpDirectory:
    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    async def find_user_id_by_email(self, email: str) -> int | None:
        data = await self._client.get_json(
            f"/api/Users/email/{quote(email, safe='@')}", allow_not_found=True
        )
        if data is None:
            return None
        return UserDto.model_validate(data).id
