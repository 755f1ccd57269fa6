"""Unit tests for AutoBidController using a mock store."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.la_autobid.application.controller import AutoBidController
from src.la_autobid.domain.models import AutoBidConfig
from src.la_common.enums import AutoBidState
from src.la_common.errors import (
    AmountBelowMinimumStepError,
    AmountNotAboveCurrentBidError,
    AmountNotPositiveError,
    RemoteRejectionError,
    RemoteTimeoutError,
    ValidationError,
)


def _make_config(**kwargs) -> AutoBidConfig:
    defaults = dict(auction_id=10, user_id=1, max_amount=31_000_000, active=True, id=3)
    defaults.update(kwargs)
    return AutoBidConfig(**defaults)


@pytest.fixture
def store():
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.create_or_update = AsyncMock(side_effect=lambda a, u, m: _make_config(max_amount=m))
    mock.deactivate = AsyncMock(return_value=None)
    return mock


class TestLoad:
    @pytest.mark.asyncio
    async def test_absent_is_not_configured(self, store) -> None:
        controller = AutoBidController(store)
        assert await controller.load(10, 1) == AutoBidState.NOT_CONFIGURED
        assert controller.config is None

    @pytest.mark.asyncio
    async def test_active_config(self, store) -> None:
        store.get = AsyncMock(return_value=_make_config())
        controller = AutoBidController(store)
        assert await controller.load(10, 1) == AutoBidState.ACTIVE
        assert controller.config.max_amount == 31_000_000

    @pytest.mark.asyncio
    async def test_inactive_config_is_not_configured(self, store) -> None:
        store.get = AsyncMock(return_value=_make_config(active=False))
        controller = AutoBidController(store)
        assert await controller.load(10, 1) == AutoBidState.NOT_CONFIGURED


class TestValidation:
    @pytest.mark.parametrize("amount", [0, -1, float("nan"), float("inf"), 1.5, "abc", None, True])
    def test_not_finite_positive(self, amount) -> None:
        with pytest.raises(AmountNotPositiveError):
            AutoBidController.validate(amount, 1_000)

    def test_not_above_current_bid(self) -> None:
        with pytest.raises(AmountNotAboveCurrentBidError):
            AutoBidController.validate(30_000_000, 30_000_000)

    def test_below_minimum_step(self) -> None:
        with pytest.raises(AmountBelowMinimumStepError):
            AutoBidController.validate(30_100_000, 30_000_000)

    def test_accepts_min_next_bid(self) -> None:
        assert AutoBidController.validate(30_625_000, 30_000_000) == 30_625_000

    def test_coerces_integral_float(self) -> None:
        assert AutoBidController.validate(31_000_000.0, 30_000_000) == 31_000_000

    @pytest.mark.asyncio
    async def test_failed_validation_makes_no_remote_call(self, store) -> None:
        controller = AutoBidController(store)
        with pytest.raises(ValidationError):
            await controller.activate_or_update(10, 1, 29_000_000, current_bid=30_000_000)
        store.create_or_update.assert_not_awaited()
        assert controller.state == AutoBidState.NOT_CONFIGURED

    def test_default_ceiling(self) -> None:
        assert AutoBidController.default_ceiling(30_000_000) == 33_125_000


class TestActivateOrUpdate:
    @pytest.mark.asyncio
    async def test_first_activation(self, store) -> None:
        controller = AutoBidController(store)
        config = await controller.activate_or_update(10, 1, 31_000_000, current_bid=30_000_000)
        assert controller.state == AutoBidState.ACTIVE
        assert config.max_amount == 31_000_000
        store.create_or_update.assert_awaited_once_with(10, 1, 31_000_000)

    @pytest.mark.asyncio
    async def test_update_when_active(self, store) -> None:
        store.get = AsyncMock(return_value=_make_config())
        controller = AutoBidController(store)
        await controller.load(10, 1)
        await controller.activate_or_update(10, 1, 35_000_000, current_bid=30_000_000)
        assert controller.state == AutoBidState.UPDATED
        assert controller.is_active
        assert controller.config.max_amount == 35_000_000

    @pytest.mark.asyncio
    async def test_load_after_update_settles_active(self, store) -> None:
        store.get = AsyncMock(return_value=_make_config())
        controller = AutoBidController(store)
        await controller.load(10, 1)
        await controller.activate_or_update(10, 1, 35_000_000, current_bid=30_000_000)
        store.get = AsyncMock(return_value=_make_config(max_amount=35_000_000))
        assert await controller.load(10, 1) == AutoBidState.ACTIVE
        assert controller.config.max_amount == 35_000_000

    @pytest.mark.asyncio
    async def test_remote_rejection_keeps_state(self, store) -> None:
        store.create_or_update = AsyncMock(side_effect=RemoteRejectionError(400, "Auction ended"))
        controller = AutoBidController(store)
        with pytest.raises(RemoteRejectionError):
            await controller.activate_or_update(10, 1, 31_000_000, current_bid=30_000_000)
        assert controller.state == AutoBidState.NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_timeout_surfaces_distinctly(self, store) -> None:
        store.create_or_update = AsyncMock(side_effect=RemoteTimeoutError("POST /api/autobids"))
        controller = AutoBidController(store)
        with pytest.raises(RemoteTimeoutError):
            await controller.activate_or_update(10, 1, 31_000_000, current_bid=30_000_000)


class TestDeactivate:
    @pytest.mark.asyncio
    async def test_deactivate_active(self, store) -> None:
        store.get = AsyncMock(return_value=_make_config())
        controller = AutoBidController(store)
        await controller.load(10, 1)
        assert await controller.deactivate(10, 1) == AutoBidState.DEACTIVATED
        assert controller.state == AutoBidState.NOT_CONFIGURED
        assert controller.config is None

    @pytest.mark.asyncio
    async def test_deactivate_twice_is_not_an_error(self, store) -> None:
        controller = AutoBidController(store)
        await controller.deactivate(10, 1)
        await controller.deactivate(10, 1)
        assert controller.state == AutoBidState.NOT_CONFIGURED
        assert store.deactivate.await_count == 2


class TestClose:
    @pytest.mark.asyncio
    async def test_response_after_close_is_discarded(self, store) -> None:
        controller = AutoBidController(store)

        async def slow_get(auction_id, user_id):
            controller.close()
            return _make_config()

        store.get = AsyncMock(side_effect=slow_get)
        assert await controller.load(10, 1) == AutoBidState.NOT_CONFIGURED
        assert controller.config is None
