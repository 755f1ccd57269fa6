# src/la_dispute/domain/repository.py
"""Reader Protocols for the dispute assembler.

Unit tests inject AsyncMocks conforming to these Protocols.
"""

from typing import Protocol

from src.la_dispute.domain.models import ChatMessage, Dispute


class DisputeReaderProtocol(Protocol):
    async def get_dispute(self, dispute_id: int) -> Dispute: ...


class ConversationReaderProtocol(Protocol):
    async def get_conversation(
        self,
        user_a: int,
        user_b: int,
        auction_id: int | None = None,
    ) -> list[ChatMessage]: ...


class UserDirectoryProtocol(Protocol):
    async def find_user_id_by_email(self, email: str) -> int | None: ...
