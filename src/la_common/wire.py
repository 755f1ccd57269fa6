"""Shared pydantic base and lenient field types for backend payloads.

The backend serializes camelCase; models accept both the wire aliases and
snake_case names.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from src.la_common.datetime_utils import parse_instant
from src.la_common.enums import ServerStatus
from src.la_common.money import to_amount


def _lenient_amount(value: Any) -> int:
    amount = to_amount(value)
    return amount if amount is not None and amount >= 0 else 0


def _optional_amount(value: Any) -> int | None:
    return None if value is None else to_amount(value)


LenientInstant = Annotated[datetime | None, BeforeValidator(parse_instant)]
Amount = Annotated[int, BeforeValidator(_lenient_amount)]
OptionalAmount = Annotated[int | None, BeforeValidator(_optional_amount)]
WireStatus = Annotated[ServerStatus, BeforeValidator(ServerStatus.from_wire)]


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
