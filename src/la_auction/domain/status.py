"""Auction status derivation: a pure function of timing and the current instant.

Priority order:
  1. server says PAUSED     → PAUSED (overrides all timing)
  2. server says CANCELLED  → CANCELLED
  3. start in the future    → SCHEDULED (checked before ENDED so a future
                              start with a past end never shows as ended)
  4. end reached            → ENDED
  5. otherwise              → ACTIVE

A missing or malformed end time degrades to ENDED: bidding is never offered
on timing data that cannot be read. The end is only read once the start has
passed, so a future start with an unreadable end is still SCHEDULED.
"""

import logging
from datetime import datetime, timedelta

from src.la_auction.domain.models import AuctionTiming, StatusReading
from src.la_common.datetime_utils import ensure_utc, format_countdown
from src.la_common.enums import DerivedStatus, ServerStatus
from src.la_common.errors import DataIntegrityWarning

logger = logging.getLogger(__name__)

_ZERO = timedelta(0)


def _checked_end(timing: AuctionTiming) -> datetime:
    end = timing.end_time
    if not isinstance(end, datetime):
        raise DataIntegrityWarning(f"end_time is {end!r}")
    return ensure_utc(end)


def derive_status(timing: AuctionTiming, now: datetime) -> DerivedStatus:
    if timing.server_status == ServerStatus.PAUSED:
        return DerivedStatus.PAUSED
    if timing.server_status == ServerStatus.CANCELLED:
        return DerivedStatus.CANCELLED

    now = ensure_utc(now)
    start = timing.start_time
    if isinstance(start, datetime) and ensure_utc(start) > now:
        return DerivedStatus.SCHEDULED

    try:
        end = _checked_end(timing)
    except DataIntegrityWarning as exc:
        logger.warning("%s; treating auction as ended", exc.message)
        return DerivedStatus.ENDED
    if end <= now:
        return DerivedStatus.ENDED
    return DerivedStatus.ACTIVE


def read_status(timing: AuctionTiming, now: datetime) -> StatusReading:
    """Status plus countdown target and the one display label for it."""
    status = derive_status(timing, now)
    now = ensure_utc(now)

    if status == DerivedStatus.PAUSED:
        if timing.paused_at is not None:
            label = f"Paused since {ensure_utc(timing.paused_at):%H:%M}"
        else:
            label = "Paused"
        return StatusReading(status, None, _ZERO, label)
    if status == DerivedStatus.CANCELLED:
        return StatusReading(status, None, _ZERO, "Cancelled")
    if status == DerivedStatus.ENDED:
        return StatusReading(status, None, _ZERO, "Ended")

    target = timing.start_time if status == DerivedStatus.SCHEDULED else timing.end_time
    assert target is not None
    target = ensure_utc(target)
    remaining = target - now
    if status == DerivedStatus.SCHEDULED:
        label = f"Starts in {format_countdown(remaining)}"
    else:
        label = format_countdown(remaining)
    return StatusReading(status, target, remaining, label)
