"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from src.la_common.enums import UserRole
from src.la_common.session import SessionContext


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def later(now):
    def _later(seconds: float) -> datetime:
        return now + timedelta(seconds=seconds)

    return _later


@pytest.fixture
def buyer_session() -> SessionContext:
    return SessionContext(user_id=1, role=UserRole.BUYER, access_token="token-1")


@pytest.fixture
def staff_session() -> SessionContext:
    return SessionContext(user_id=7, role=UserRole.STAFF)
