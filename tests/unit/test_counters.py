"""Tests for UnreadCounter."""

from src.la_sync.domain.counters import UnreadCounter


class TestUnreadCounter:
    def test_increment_once_per_key(self) -> None:
        counter = UnreadCounter()
        assert counter.increment("message:1") is True
        assert counter.increment("message:1") is False
        assert counter.count == 1
        assert counter.is_unread("message:1")

    def test_decrement_once_per_key(self) -> None:
        counter = UnreadCounter()
        counter.increment("message:1")
        counter.increment("message:2")
        assert counter.decrement("message:1") is True
        assert counter.decrement("message:1") is False
        assert counter.count == 1

    def test_never_negative(self) -> None:
        counter = UnreadCounter()
        assert counter.decrement("message:1") is False
        assert counter.count == 0

    def test_read_key_cannot_be_re_incremented(self) -> None:
        counter = UnreadCounter()
        counter.increment("message:1")
        counter.decrement("message:1")
        assert counter.increment("message:1") is False
        assert counter.count == 0

    def test_seeded_total_without_ids(self) -> None:
        counter = UnreadCounter(count=3)
        assert counter.decrement("notification:9") is True
        assert counter.count == 2

    def test_reset_takes_authoritative_total(self) -> None:
        counter = UnreadCounter()
        counter.increment("message:1")
        counter.reset(5, ["message:1", "message:2"])
        assert counter.count == 5
        assert counter.increment("message:2") is False

    def test_reset_count_at_least_ids(self) -> None:
        counter = UnreadCounter(count=1, unread_ids=["a", "b"])
        assert counter.count == 2

    def test_clear(self) -> None:
        counter = UnreadCounter()
        counter.increment("a")
        counter.increment("b")
        counter.clear()
        assert counter.count == 0
        assert counter.increment("a") is False

    def test_reset_without_ids_remembers_counted_keys(self) -> None:
        counter = UnreadCounter()
        counter.increment("message:1")
        counter.reset(1)
        assert counter.increment("message:1") is False
        assert counter.count == 1
        assert counter.is_unread("message:1")

    def test_reset_to_zero_without_ids_clears_unread(self) -> None:
        counter = UnreadCounter()
        counter.increment("message:1")
        counter.reset(0)
        assert counter.count == 0
        assert not counter.is_unread("message:1")
        assert counter.increment("message:1") is False
