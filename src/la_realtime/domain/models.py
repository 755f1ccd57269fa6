"""Realtime domain models: pure dataclasses, no transport dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.la_common.enums import StreamKind


@dataclass(frozen=True)
class StreamEvent:
    """One logical pushed event. Identity is ``id``; redeliveries share it."""

    id: str
    kind: StreamKind
    name: str  # hub target, e.g. "BidPlaced"
    occurred_at: datetime
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class HubEndpoint:
    """Where a logical stream lives and how it scopes topics."""

    path: str
    join_method: str
    leave_method: str
