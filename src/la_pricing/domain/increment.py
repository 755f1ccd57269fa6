"""Tiered bid increment table.

The minimum legal step above a price depends on the price's magnitude. Both
the increment table shown to users and the auto-bid validator go through
``increment_for``; there is no second copy of these numbers anywhere.
"""

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True)
class BidIncrementTier:
    lower_bound: int
    step: int


BID_INCREMENT_TIERS: tuple[BidIncrementTier, ...] = (
    BidIncrementTier(lower_bound=0, step=1_000),
    BidIncrementTier(lower_bound=25_000, step=5_000),
    BidIncrementTier(lower_bound=125_000, step=10_000),
    BidIncrementTier(lower_bound=625_000, step=25_000),
    BidIncrementTier(lower_bound=2_500_000, step=50_000),
    BidIncrementTier(lower_bound=6_250_000, step=125_000),
    BidIncrementTier(lower_bound=12_500_000, step=250_000),
    BidIncrementTier(lower_bound=25_000_000, step=625_000),
    BidIncrementTier(lower_bound=62_500_000, step=1_250_000),
    BidIncrementTier(lower_bound=125_000_000, step=2_500_000),
)

_LOWER_BOUNDS = [tier.lower_bound for tier in BID_INCREMENT_TIERS]


def tier_for(price: int) -> BidIncrementTier:
    """Highest tier whose lower bound is <= price; negatives clamp to the first."""
    index = bisect_right(_LOWER_BOUNDS, price) - 1
    return BID_INCREMENT_TIERS[max(index, 0)]


def increment_for(price: int) -> int:
    return tier_for(price).step


def min_next_bid(current_bid: int) -> int:
    """Smallest bid the backend will accept over ``current_bid``."""
    return current_bid + increment_for(current_bid)


def suggested_ceiling(current_bid: int, steps: int = 5) -> int:
    """Default auto-bid ceiling offered to the user: a few steps above the price."""
    return current_bid + increment_for(current_bid) * steps
