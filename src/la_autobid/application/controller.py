"""Auto-bid configuration workflow for one (auction, user) pair.

State machine:
    NOT_CONFIGURED --activate--> ACTIVE --update--> UPDATED --update--> UPDATED
    UPDATED --load--> ACTIVE
    ACTIVE/UPDATED --deactivate--> DEACTIVATED --(settle)--> NOT_CONFIGURED

UPDATED counts as active (``is_active``); the next ``load`` settles it back
to ACTIVE.

The backend owns the configuration. Local validation only rejects amounts
the backend would certainly refuse, and a validation failure never reaches it.
"""

import logging

from src.la_autobid.domain.models import AutoBidConfig
from src.la_autobid.domain.repository import AutoBidStoreProtocol
from src.la_common.enums import AutoBidState
from src.la_common.errors import (
    AmountBelowMinimumStepError,
    AmountNotAboveCurrentBidError,
    AmountNotPositiveError,
)
from src.la_common.money import to_amount
from src.la_pricing.domain.increment import min_next_bid, suggested_ceiling

logger = logging.getLogger(__name__)


def validate_max_amount(max_amount: object, current_bid: int) -> int:
    """Return ``max_amount`` as whole dong or raise a 1xxx ValidationError."""
    amount = to_amount(max_amount)
    if amount is None or amount <= 0:
        raise AmountNotPositiveError(max_amount)
    if amount <= current_bid:
        raise AmountNotAboveCurrentBidError(amount, current_bid)
    minimum = min_next_bid(current_bid)
    if amount < minimum:
        raise AmountBelowMinimumStepError(amount, minimum)
    return amount


class AutoBidController:
    def __init__(self, store: AutoBidStoreProtocol) -> None:
        self._store = store
        self._state = AutoBidState.NOT_CONFIGURED
        self._config: AutoBidConfig | None = None
        self._epoch = 0

    @property
    def state(self) -> AutoBidState:
        return self._state

    @property
    def config(self) -> AutoBidConfig | None:
        return self._config

    @property
    def is_active(self) -> bool:
        return self._state in (AutoBidState.ACTIVE, AutoBidState.UPDATED)

    @staticmethod
    def validate(max_amount: object, current_bid: int) -> int:
        return validate_max_amount(max_amount, current_bid)

    @staticmethod
    def default_ceiling(current_bid: int) -> int:
        return suggested_ceiling(current_bid)

    def _apply(self, config: AutoBidConfig | None, *, updated: bool = False) -> None:
        if config is None or not config.active:
            self._config = config
            self._state = AutoBidState.NOT_CONFIGURED
            return
        self._config = config
        self._state = AutoBidState.UPDATED if updated else AutoBidState.ACTIVE

    async def load(self, auction_id: int, user_id: int) -> AutoBidState:
        epoch = self._epoch
        config = await self._store.get(auction_id, user_id)
        if epoch != self._epoch:
            logger.debug("Discarding stale auto-bid load for auction %d", auction_id)
            return self._state
        self._apply(config)
        return self._state

    async def activate_or_update(
        self,
        auction_id: int,
        user_id: int,
        max_amount: object,
        current_bid: int,
    ) -> AutoBidConfig:
        amount = self.validate(max_amount, current_bid)
        was_active = self.is_active
        epoch = self._epoch
        config = await self._store.create_or_update(auction_id, user_id, amount)
        if epoch != self._epoch:
            logger.debug("Discarding stale auto-bid save for auction %d", auction_id)
            return config
        self._apply(config, updated=was_active)
        logger.info(
            "Auto-bid %s: auction=%d user=%d max=%d",
            self._state.value, auction_id, user_id, amount,
        )
        return config

    async def deactivate(self, auction_id: int, user_id: int) -> AutoBidState:
        """Idempotent: deactivating when nothing is configured still settles."""
        epoch = self._epoch
        await self._store.deactivate(auction_id, user_id)
        if epoch != self._epoch:
            return self._state
        self._state = AutoBidState.DEACTIVATED
        logger.info("Auto-bid deactivated: auction=%d user=%d", auction_id, user_id)
        self._config = None
        self._state = AutoBidState.NOT_CONFIGURED
        return AutoBidState.DEACTIVATED

    def close(self) -> None:
        """Responses arriving after close are ignored."""
        self._epoch += 1
