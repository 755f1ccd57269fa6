"""Dispute conversation thread: relevance predicate, assembly and live append.

A thread is an immutable tuple sorted by ``sent_at``. It is only ever
rebuilt or replaced; ``accept`` returns a new tuple.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from src.la_common.datetime_utils import ensure_utc
from src.la_dispute.domain.models import ChatMessage, ConversationThread, Participants

# Sending to N recipients creates N records with the same sender and content
FAN_OUT_WINDOW = timedelta(seconds=2)


def is_relevant(
    message: ChatMessage,
    participants: Participants,
    created_at: datetime,
    grace: timedelta,
) -> bool:
    ids = participants.ids
    if message.sender_id not in ids or message.receiver_id not in ids:
        return False
    return ensure_utc(message.sent_at) >= ensure_utc(created_at) - grace


def _sort_key(message: ChatMessage) -> datetime:
    return ensure_utc(message.sent_at)


def build_thread(
    messages: Iterable[ChatMessage],
    participants: Participants,
    created_at: datetime,
    grace: timedelta,
) -> ConversationThread:
    """Flatten, dedup by id (first seen wins), filter, then stable-sort."""
    seen: set[int] = set()
    kept: list[ChatMessage] = []
    for message in messages:
        if message.id in seen:
            continue
        seen.add(message.id)
        if is_relevant(message, participants, created_at, grace):
            kept.append(message)
    return tuple(sorted(kept, key=_sort_key))


def _is_fan_out_copy(existing: ChatMessage, message: ChatMessage) -> bool:
    return (
        existing.sender_id == message.sender_id
        and existing.content == message.content
        and existing.dispute_id == message.dispute_id
        and abs(_sort_key(existing) - _sort_key(message)) <= FAN_OUT_WINDOW
    )


def accept(
    thread: ConversationThread,
    message: ChatMessage,
    participants: Participants,
    created_at: datetime,
    grace: timedelta,
    dispute_id: int | None = None,
) -> ConversationThread:
    """Return ``thread`` with ``message`` appended and re-sorted, if it belongs.

    Irrelevant messages, redeliveries and fan-out copies leave the thread
    unchanged (the same tuple is returned).
    """
    if dispute_id is not None and message.dispute_id is not None and message.dispute_id != dispute_id:
        return thread
    if not is_relevant(message, participants, created_at, grace):
        return thread
    if any(m.id == message.id or _is_fan_out_copy(m, message) for m in thread):
        return thread
    return tuple(sorted((*thread, message), key=_sort_key))
