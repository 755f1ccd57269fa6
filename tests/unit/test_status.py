"""Tests for auction status derivation and the countdown reading."""

from datetime import UTC, datetime, timedelta

import pytest

from src.la_auction.application.schemas import AuctionDto
from src.la_auction.domain.models import AuctionTiming
from src.la_auction.domain.status import derive_status, read_status
from src.la_common.enums import DerivedStatus, ServerStatus
from src.la_pricing.domain.increment import increment_for

T = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def _timing(**kwargs) -> AuctionTiming:
    defaults = dict(
        start_time=T + timedelta(seconds=10),
        end_time=T + timedelta(seconds=20),
        paused_at=None,
        server_status=ServerStatus.ACTIVE,
    )
    defaults.update(kwargs)
    return AuctionTiming(**defaults)


class TestDeriveStatus:
    def test_lifecycle_by_time(self) -> None:
        timing = _timing()
        assert derive_status(timing, T) == DerivedStatus.SCHEDULED
        assert derive_status(timing, T + timedelta(seconds=15)) == DerivedStatus.ACTIVE
        assert derive_status(timing, T + timedelta(seconds=25)) == DerivedStatus.ENDED

    def test_end_is_exclusive(self) -> None:
        assert derive_status(_timing(), T + timedelta(seconds=20)) == DerivedStatus.ENDED

    @pytest.mark.parametrize("offset", [-3600, 0, 15, 25, 86_400])
    def test_paused_overrides_time(self, offset) -> None:
        timing = _timing(server_status=ServerStatus.PAUSED)
        assert derive_status(timing, T + timedelta(seconds=offset)) == DerivedStatus.PAUSED

    def test_cancelled_overrides_time(self) -> None:
        timing = _timing(server_status=ServerStatus.CANCELLED)
        assert derive_status(timing, T + timedelta(seconds=15)) == DerivedStatus.CANCELLED

    def test_future_start_wins_over_past_end(self) -> None:
        timing = _timing(start_time=T + timedelta(hours=1), end_time=T - timedelta(hours=1))
        assert derive_status(timing, T) == DerivedStatus.SCHEDULED

    def test_missing_end_time_degrades_to_ended(self, caplog) -> None:
        timing = _timing(start_time=None, end_time=None)
        assert derive_status(timing, T) == DerivedStatus.ENDED
        assert "treating auction as ended" in caplog.text

    def test_missing_end_time_with_future_start_is_scheduled(self) -> None:
        timing = _timing(start_time=T + timedelta(hours=1), end_time=None)
        assert derive_status(timing, T) == DerivedStatus.SCHEDULED
        assert derive_status(timing, T + timedelta(hours=2)) == DerivedStatus.ENDED

    def test_naive_datetimes_are_utc(self) -> None:
        timing = _timing(start_time=None, end_time=datetime(2025, 6, 1, 13, 0))
        assert derive_status(timing, T) == DerivedStatus.ACTIVE

    def test_unknown_server_status_uses_time(self) -> None:
        timing = _timing(server_status=ServerStatus.UNKNOWN)
        assert derive_status(timing, T + timedelta(seconds=15)) == DerivedStatus.ACTIVE


class TestReadStatus:
    def test_scheduled_counts_to_start(self) -> None:
        reading = read_status(_timing(), T)
        assert reading.target == T + timedelta(seconds=10)
        assert reading.label == "Starts in 0:00:10"
        assert not reading.accepts_bids

    def test_active_counts_to_end(self) -> None:
        reading = read_status(_timing(), T + timedelta(seconds=15))
        assert reading.remaining == timedelta(seconds=5)
        assert reading.label == "0:00:05"
        assert reading.accepts_bids

    def test_paused_label_with_time(self) -> None:
        timing = _timing(server_status=ServerStatus.PAUSED, paused_at=T.replace(hour=9, minute=5))
        reading = read_status(timing, T)
        assert reading.label == "Paused since 09:05"
        assert reading.target is None

    def test_paused_label_without_time(self) -> None:
        assert read_status(_timing(server_status=ServerStatus.PAUSED), T).label == "Paused"

    def test_terminal_labels(self) -> None:
        assert read_status(_timing(), T + timedelta(minutes=1)).label == "Ended"
        cancelled = _timing(server_status=ServerStatus.CANCELLED)
        assert read_status(cancelled, T).label == "Cancelled"


class TestWireSnapshot:
    def test_open_ended_start_thirty_million(self) -> None:
        now = datetime.now(UTC)
        dto = AuctionDto.model_validate(
            {
                "id": 5,
                "startTime": None,
                "endTime": (now + timedelta(hours=1)).isoformat(),
                "status": "Active",
                "currentBid": 30_000_000,
                "startingBid": 1_000_000,
                "bidCount": 12,
            }
        )
        snapshot = dto.to_domain()
        assert increment_for(snapshot.current_bid) == 625_000
        assert derive_status(snapshot.timing, now) == DerivedStatus.ACTIVE

    def test_malformed_end_time_reads_as_ended(self) -> None:
        dto = AuctionDto.model_validate({"id": 5, "endTime": "garbage", "status": "active"})
        assert dto.end_time is None
        assert derive_status(dto.to_domain().timing, T) == DerivedStatus.ENDED
