"""Periodic market simulation: price drift and lifecycle transitions.

The clock sweeps every token in the registry on a fixed interval. Each tick
draws a uniform perturbation within the configured volatility, applies it
to the price (respecting the price floor) and then evaluates the
launching -> trading -> ipo -> graduated state machine.
"""

import logging
import math
import threading
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from .config import SimulationConfig
from .registry import TokenRegistry
from .state import MusicToken, TokenStatus

logger = logging.getLogger(__name__)


def evaluate_status_transition(
    token: MusicToken, now: datetime, config: SimulationConfig
) -> Optional[TokenStatus]:
    """Advance the token's lifecycle status if its gates are met.

    Rules are checked in order, each guarded by the current status, so a
    token only ever moves forward and graduated is terminal. Returns the
    final status when it changed, otherwise None.
    """
    initial_status = token.status
    days = token.days_since_launch(now)

    if (token.status is TokenStatus.LAUNCHING
            and days >= config.trading_min_days
            and token.market_cap >= config.graduation_threshold):
        token.status = TokenStatus.TRADING
        logger.info("Token %s moved to trading", token.name)

    if (token.status is TokenStatus.TRADING
            and days >= config.ipo_min_days
            and token.market_cap >= config.ipo_threshold):
        token.status = TokenStatus.IPO
        token.ipo_date = now
        logger.info("Token %s eligible for IPO", token.name)

    if (token.status is TokenStatus.IPO
            and days >= config.graduation_min_days
            and token.market_cap >= config.ipo_threshold * 2):
        token.status = TokenStatus.GRADUATED
        token.graduation_date = now
        logger.info("Token %s graduated to main exchange", token.name)

    return token.status if token.status is not initial_status else None


class MarketSimulationClock:
    """Recurring drift and lifecycle sweep over a ``TokenRegistry``.

    ``tick()`` can be driven directly (tests, batch runs); ``start()`` runs it
    on a background thread every ``config.tick_interval_seconds`` until
    ``stop()``.
    """

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
        self.ticks = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="market-simulation-clock", daemon=True)
        self._thread.start()
        logger.info("Market simulation started (interval %.1fs)", self.config.tick_interval_seconds)

    def stop(self) -> None:
        """Stop the background sweep; safe to call repeatedly."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join()
        self._thread = None
        logger.info("Market simulation stopped after %d ticks", self.ticks)

    def _run(self) -> None:
        while not self._stop_event.wait(self.config.tick_interval_seconds):
            self.tick()

    def tick(self) -> int:
        """Apply one sweep; returns the number of tokens updated."""
        now = self.now()
        updated = 0
        for token in self.registry.all_tokens():
            try:
                with self.registry.lock:
                    if self._simulate_token(token, now):
                        updated += 1
            except Exception:
                logger.exception("Skipping token %s during tick", token.id)
        self.ticks += 1
        return updated

    def _simulate_token(self, token: MusicToken, now: datetime) -> bool:
        volatility = self.config.price_volatility
        perturbation = float(self.rng.uniform(-volatility, volatility))

        new_price = max(self.config.min_price, token.current_price * (1 + perturbation))
        new_market_cap = new_price * token.circulating_supply
        if not (math.isfinite(new_price) and math.isfinite(new_market_cap)):
            logger.warning("Non-finite drift for %s; keeping last valid state", token.symbol)
            return False

        token.apply_price(new_price, self.config.min_price)
        token.price_change_24h = perturbation * 100

        evaluate_status_transition(token, now, self.config)
        return True
