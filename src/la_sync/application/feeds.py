"""ReconciledFeed: subscribable reconciled sequence for one stream.

Two independent producers feed it: the push channel (``attach``) and REST
snapshots/polls (``seed``). Both go through ``reconcile``, so an event seen
by both producers, or redelivered by either, appears once.
"""

import itertools
import logging
from collections.abc import Callable, Iterable

from src.la_common.enums import StreamKind
from src.la_realtime.domain.models import StreamEvent
from src.la_realtime.engine.channel import RealtimeChannelManager
from src.la_sync.domain.counters import UnreadCounter
from src.la_sync.domain.reconcile import FeedItem, reconcile

logger = logging.getLogger(__name__)

FeedListener = Callable[[tuple[FeedItem, ...]], None]
EventFilter = Callable[[StreamEvent], bool]


class ReconciledFeed:
    def __init__(
        self,
        kind: StreamKind,
        accept: EventFilter | None = None,
        limit: int | None = None,
        name: str | None = None,
    ) -> None:
        self._kind = kind
        self._accept = accept
        self._limit = limit
        self._name = name or kind.value.lower()
        self._items: tuple[FeedItem, ...] = ()
        self._arrivals = itertools.count(1)
        self._listeners: list[FeedListener] = []
        self._attached: list[RealtimeChannelManager] = []

    @property
    def items(self) -> tuple[FeedItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _fold(self, event: StreamEvent | FeedItem) -> bool:
        if event.kind != self._kind:
            return False
        if self._accept is not None and isinstance(event, StreamEvent) and not self._accept(event):
            return False
        updated = reconcile(self._items, event, arrival=next(self._arrivals))
        if self._limit is not None and len(updated) > self._limit:
            updated = updated[-self._limit:]
        if updated == self._items:
            return False
        self._items = updated
        return True

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._items)
            except Exception:
                logger.exception("Listener of %s feed failed", self._name)

    def push(self, event: StreamEvent) -> bool:
        """Fold one pushed event; True if the sequence changed."""
        changed = self._fold(event)
        if changed:
            self._publish()
        return changed

    def seed(self, events: Iterable[StreamEvent | FeedItem]) -> bool:
        """Fold a REST snapshot; listeners are notified once."""
        changed = False
        for event in events:
            changed = self._fold(event) or changed
        if changed:
            self._publish()
        return changed

    def attach(self, channel: RealtimeChannelManager) -> None:
        channel.on(self._kind, self.push)
        self._attached.append(channel)

    def detach(self) -> None:
        for channel in self._attached:
            channel.off(self._kind, self.push)
        self._attached.clear()


class UnreadBadge:
    """Unread total for one stream, fed by pushes and REST counts alike."""

    def __init__(self, kind: StreamKind, accept: EventFilter | None = None) -> None:
        self._kind = kind
        self._accept = accept
        self.counter = UnreadCounter()
        self._listeners: list[Callable[[int], None]] = []

    @property
    def count(self) -> int:
        return self.counter.count

    def subscribe(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.counter.count)
            except Exception:
                logger.exception("Unread badge listener failed")

    def push(self, event: StreamEvent) -> bool:
        if event.kind != self._kind:
            return False
        if self._accept is not None and not self._accept(event):
            return False
        changed = self.counter.increment(event.id)
        if changed:
            self._publish()
        return changed

    def mark_read(self, key: str) -> bool:
        changed = self.counter.decrement(key)
        if changed:
            self._publish()
        return changed

    def seed(self, count: int, unread_ids: Iterable[str] = ()) -> None:
        before = self.counter.count
        self.counter.reset(count, unread_ids)
        if self.counter.count != before:
            self._publish()

    def attach(self, channel: RealtimeChannelManager) -> None:
        channel.on(self._kind, self.push)
