"""Pydantic schemas for the increment table shown next to the bid form."""

from pydantic import BaseModel

from src.la_common.money import format_compact, format_vnd
from src.la_pricing.domain.increment import BID_INCREMENT_TIERS, increment_for


class IncrementTierRow(BaseModel):
    lower_bound: int
    upper_bound: int | None  # exclusive; None for the open-ended top tier
    step: int
    label: str
    step_display: str


def increment_table() -> list[IncrementTierRow]:
    rows: list[IncrementTierRow] = []
    tiers = BID_INCREMENT_TIERS
    for i, tier in enumerate(tiers):
        upper = tiers[i + 1].lower_bound if i + 1 < len(tiers) else None
        if upper is None:
            label = f"from {format_compact(tier.lower_bound)}"
        else:
            label = f"{format_compact(tier.lower_bound)} - {format_compact(upper)}"
        # Same function the auto-bid validator uses
        step = increment_for(tier.lower_bound)
        rows.append(
            IncrementTierRow(
                lower_bound=tier.lower_bound,
                upper_bound=upper,
                step=step,
                label=label,
                step_display=format_vnd(step),
            )
        )
    return rows
