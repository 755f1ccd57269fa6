"""Event reconciliation: fold at-least-once, possibly reordered deliveries
into one ascending, duplicate-free sequence.

Rules:
  1. an item whose id is already present is ignored;
  2. new items are inserted by ``occurred_at``; equal timestamps keep
     arrival order (insert after existing equals);
  3. the result is a new tuple; inputs are never mutated.

Because of (1) replays never change the result. Events with distinct
timestamps end up in the same order whatever order they arrived in; only
events sharing an ``occurred_at`` are ordered by arrival.
"""

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.la_common.datetime_utils import ensure_utc
from src.la_common.enums import StreamKind
from src.la_realtime.domain.models import StreamEvent


@dataclass(frozen=True)
class FeedItem:
    id: str
    kind: StreamKind
    occurred_at: datetime
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    arrival: int = field(default=0, compare=False)

    @classmethod
    def from_event(cls, event: StreamEvent, arrival: int = 0) -> "FeedItem":
        return cls(
            id=event.id,
            kind=event.kind,
            occurred_at=ensure_utc(event.occurred_at),
            payload=event.payload,
            arrival=arrival,
        )


def _as_item(incoming: StreamEvent | FeedItem, arrival: int) -> FeedItem:
    if isinstance(incoming, FeedItem):
        return FeedItem(
            incoming.id,
            incoming.kind,
            ensure_utc(incoming.occurred_at),
            incoming.payload,
            arrival,
        )
    return FeedItem.from_event(incoming, arrival)


def reconcile(
    existing: Sequence[FeedItem],
    incoming: StreamEvent | FeedItem,
    arrival: int | None = None,
) -> tuple[FeedItem, ...]:
    if any(item.id == incoming.id for item in existing):
        return tuple(existing)
    if arrival is None:
        arrival = max((item.arrival for item in existing), default=0) + 1
    item = _as_item(incoming, arrival)
    items = list(existing)
    index = bisect_right(items, item.occurred_at, key=lambda i: i.occurred_at)
    items.insert(index, item)
    return tuple(items)


def merge_snapshot(
    existing: Sequence[FeedItem],
    snapshot: Iterable[StreamEvent | FeedItem],
) -> tuple[FeedItem, ...]:
    """Fold a REST page into the sequence with the same dedup/order rules."""
    result = tuple(existing)
    for incoming in snapshot:
        result = reconcile(result, incoming)
    return result
