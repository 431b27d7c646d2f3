"""Discrete market shocks driven by external business events.

Each operation is a single-token read-modify-write under the registry lock
and either applies fully or not at all. Unmet business rules return False.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from .config import SimulationConfig
from .registry import TokenRegistry
from .state import MusicToken, TokenStatus

logger = logging.getLogger(__name__)


class EventSimulator:
    """Tour announcements, exchange graduation and exchange demand surges."""

    def __init__(
        self,
        registry: TokenRegistry,
        config: Optional[SimulationConfig] = None,
        rng=None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.registry = registry
        self.config = config or registry.config
        self.rng = rng if rng is not None else np.random.RandomState(self.config.random_seed)
        self.now = now or registry.now

    def _draw(self, bounds) -> float:
        low, high = bounds
        return float(self.rng.uniform(low, high))

    def tour_announcement(self, token_id: str) -> bool:
        """A secured tour lifts projected revenue by 50-70% and price by 20-40%."""
        with self.registry.lock:
            token = self.registry.get_token(token_id)
            if token is None:
                return False

            revenue_increase = self._draw(self.config.tour_revenue_range)
            price_increase = self._draw(self.config.tour_price_range)

            token.projected_revenue *= 1 + revenue_increase
            token.projected_dividends = token.projected_revenue * (self.config.base_roi / 100)
            token.apply_price(token.current_price * (1 + price_increase), self.config.min_price)
            if token.market_cap > 0:
                token.roi = token.projected_dividends / token.market_cap * 100

        logger.info("Tour announced for %s: price +%.1f%%", token.name, price_increase * 100)
        return True

    def graduate_to_exchange(self, token_id: str) -> bool:
        """Graduate once lifetime traded volume reaches the threshold."""
        with self.registry.lock:
            token = self.registry.get_token(token_id)
            if token is None:
                return False

            lifetime_volume = token.lifetime_volume()
            if lifetime_volume < self.config.graduation_volume_threshold:
                logger.info("Insufficient volume for graduation: %s (%.2f)", token.name, lifetime_volume)
                return False

            self._apply_graduation(token)

        logger.info("Token %s graduated to major exchanges", token.name)
        return True

    def instant_graduate(self, token_id: str) -> bool:
        """Privileged override: graduate without the volume gate.

        Kept apart from ``graduate_to_exchange`` on purpose; it exists for
        demos and administrative use only.
        """
        with self.registry.lock:
            token = self.registry.get_token(token_id)
            if token is None:
                return False
            self._apply_graduation(token)

        logger.warning("Token %s instantly graduated (volume gate bypassed)", token.name)
        return True

    def _apply_graduation(self, token: MusicToken) -> None:
        token.status = TokenStatus.GRADUATED
        token.graduation_date = self.now()
        token.apply_price(token.current_price * self.config.graduation_price_multiplier, self.config.min_price)
        token.volume_24h *= self.config.graduation_volume_multiplier

    def exchange_demand_surge(self, token_id: str) -> bool:
        """Listing demand: +30-60% price and doubled volume, graduated tokens only."""
        with self.registry.lock:
            token = self.registry.get_token(token_id)
            if token is None or token.status is not TokenStatus.GRADUATED:
                return False

            price_increase = self._draw(self.config.demand_surge_range)
            token.apply_price(token.current_price * (1 + price_increase), self.config.min_price)
            token.volume_24h *= self.config.demand_volume_multiplier

        logger.info("Exchange demand surge for %s: price +%.1f%%", token.name, price_increase * 100)
        return True

    def lifetime_volume(self, token_id: str) -> float:
        return self.registry.lifetime_volume(token_id)
