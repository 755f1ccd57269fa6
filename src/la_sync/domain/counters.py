"""Unread counters guarded by the same identity keys as the feeds.

A replayed "new message" push cannot increment twice, and a replayed
"marked read" cannot decrement twice. The count never goes below zero.
"""

from collections.abc import Iterable


class UnreadCounter:
    def __init__(self, count: int = 0, unread_ids: Iterable[str] = ()) -> None:
        self._count = 0
        self._unread: set[str] = set()
        self._read: set[str] = set()
        self._seen: set[str] = set()
        self.reset(count, unread_ids)

    @property
    def count(self) -> int:
        return self._count

    def is_unread(self, key: str) -> bool:
        return key in self._unread

    def increment(self, key: str) -> bool:
        if key in self._seen:
            return False
        self._seen.add(key)
        self._unread.add(key)
        self._count += 1
        return True

    def decrement(self, key: str) -> bool:
        if key in self._read:
            return False
        self._read.add(key)
        self._seen.add(key)
        self._unread.discard(key)
        if self._count == 0:
            return False
        self._count -= 1
        return True

    def reset(self, count: int, unread_ids: Iterable[str] = ()) -> None:
        """Replace the total with an authoritative REST count.

        Ids already counted stay remembered, so a late redelivery of a push
        the REST total includes is not counted again. The unread set is only
        replaced when ids are supplied.
        """
        ids = set(unread_ids)
        self._count = max(count, len(ids), 0)
        if ids:
            self._unread = ids
            self._read -= ids
            self._seen |= ids
        elif self._count == 0:
            self._unread.clear()

    def clear(self) -> None:
        """Mark everything read (e.g. "mark all as read")."""
        self._read |= self._unread
        self._unread.clear()
        self._count = 0
