"""Dispute conversation assembly.

A dispute involves three parties but the backend stores messages pairwise.
``assemble`` fetches every pair, merges and filters them into one thread;
``DisputeConversation`` keeps that thread current as pushed messages arrive.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import timedelta

from pydantic import ValidationError as SchemaError

from config.settings import settings
from src.la_common.enums import StreamKind
from src.la_common.errors import NotFoundError
from src.la_common.session import SessionContext
from src.la_dispute.application.schemas import MessageDto
from src.la_dispute.domain.models import ChatMessage, ConversationThread, Dispute, Participants
from src.la_dispute.domain.repository import (
    ConversationReaderProtocol,
    DisputeReaderProtocol,
    UserDirectoryProtocol,
)
from src.la_dispute.domain.thread import accept, build_thread
from src.la_realtime.domain.models import StreamEvent
from src.la_realtime.engine.channel import RealtimeChannelManager

logger = logging.getLogger(__name__)

ThreadListener = Callable[[ConversationThread], None]


class DisputeConversation:
    """Live thread for one open dispute view."""

    def __init__(
        self,
        dispute: Dispute,
        participants: Participants,
        thread: ConversationThread,
        grace: timedelta,
    ) -> None:
        self.dispute = dispute
        self.participants = participants
        self.grace = grace
        self._thread = thread
        self._listeners: list[ThreadListener] = []
        self._channel: RealtimeChannelManager | None = None

    @property
    def thread(self) -> ConversationThread:
        return self._thread

    def subscribe(self, listener: ThreadListener) -> None:
        self._listeners.append(listener)

    def accept(self, message: ChatMessage) -> bool:
        """Append ``message`` if it belongs to this dispute; True if the thread changed."""
        updated = accept(
            self._thread,
            message,
            self.participants,
            self.dispute.created_at,
            self.grace,
            dispute_id=self.dispute.id,
        )
        if updated is self._thread:
            return False
        self._thread = updated
        for listener in list(self._listeners):
            try:
                listener(updated)
            except Exception:
                logger.exception("Thread listener failed for dispute %d", self.dispute.id)
        return True

    def _on_event(self, event: StreamEvent) -> None:
        try:
            message = MessageDto.model_validate(event.payload).to_domain()
        except SchemaError:
            logger.warning("Ignoring malformed message event %s", event.id)
            return
        if message is not None:
            self.accept(message)

    def attach(self, channel: RealtimeChannelManager) -> None:
        channel.on(StreamKind.MESSAGE, self._on_event)
        self._channel = channel

    def detach(self) -> None:
        if self._channel is not None:
            self._channel.off(StreamKind.MESSAGE, self._on_event)
            self._channel = None


class DisputeConversationAssembler:
    def __init__(
        self,
        disputes: DisputeReaderProtocol,
        conversations: ConversationReaderProtocol,
        users: UserDirectoryProtocol,
        session: SessionContext | None = None,
        grace_seconds: float | None = None,
        admin_email: str | None = None,
    ) -> None:
        self._disputes = disputes
        self._conversations = conversations
        self._users = users
        self._session = session
        if grace_seconds is None:
            grace_seconds = settings.DISPUTE_GRACE_SECONDS
        self._grace = timedelta(seconds=grace_seconds)
        self._admin_email = admin_email or settings.SUPPORT_ADMIN_EMAIL

    async def resolve_admin(self, dispute: Dispute) -> int:
        if dispute.resolved_by is not None:
            return dispute.resolved_by
        if self._session is not None and self._session.is_staff:
            return self._session.user_id
        admin_id = await self._users.find_user_id_by_email(self._admin_email)
        if admin_id is None:
            raise NotFoundError(f"support admin {self._admin_email}")
        return admin_id

    async def open(self, dispute_id: int) -> DisputeConversation:
        dispute = await self._disputes.get_dispute(dispute_id)
        admin_id = await self.resolve_admin(dispute)
        participants = Participants(dispute.buyer_id, dispute.seller_id, admin_id)

        pairs = participants.pairs()
        batches = await asyncio.gather(
            *(self._conversations.get_conversation(a, b) for a, b in pairs)
        )
        flattened = [message for batch in batches for message in batch]
        thread = build_thread(flattened, participants, dispute.created_at, self._grace)
        logger.info(
            "Assembled dispute %d: %d pairs, %d fetched, %d in thread",
            dispute_id, len(pairs), len(flattened), len(thread),
        )
        return DisputeConversation(dispute, participants, thread, self._grace)

    async def assemble(self, dispute_id: int) -> ConversationThread:
        conversation = await self.open(dispute_id)
        return conversation.thread
