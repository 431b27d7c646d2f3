"""Marketplace facade consumed by the app layer.

Wires one registry, event simulator and simulation clock together around a
shared configuration, random source and time source. Nothing starts on
construction; call ``start_simulation()`` to run the background clock.
"""

from datetime import datetime
from typing import Callable, List, Optional, Union

import numpy as np

from .catalog import example_tokens, touring_tokens
from .config import SimulationConfig
from .events import EventSimulator
from .market import MarketSimulationClock
from .pricing import (
    calculate_roi_projection,
    price_impact,
    reserve_for_tokens,
    tokens_for_reserve,
)
from .registry import TokenRegistry
from .state import (
    CreateTokenRequest,
    MarketStats,
    MusicToken,
    ROIProjection,
    TokenCreationResult,
    TokenStatus,
    TradeSide,
)


class MarketplaceService:
    """Query and command surface for music-rights tokens."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        on_status_update: Optional[Callable[[str], None]] = None,
        rng=None,
        now: Optional[Callable[[], datetime]] = None,
        load_examples: bool = True,
    ) -> None:
        self.config = config or SimulationConfig()
        self.config.validate()
        self.rng = rng if rng is not None else np.random.RandomState(self.config.random_seed)
        self.now = now or datetime.now

        self.registry = TokenRegistry(self.config, now=self.now, on_status_update=on_status_update)
        self.events = EventSimulator(self.registry, self.config, rng=self.rng, now=self.now)
        self.clock = MarketSimulationClock(self.registry, self.config, rng=self.rng, now=self.now)

        if load_examples:
            self.registry.replace_all(example_tokens(self.now()))

    # Queries
    def get_all_tokens(self) -> List[MusicToken]:
        return self.registry.all_tokens()

    def get_token(self, token_id: str) -> Optional[MusicToken]:
        return self.registry.get_token(token_id)

    def get_tokens_by_status(self, status: Union[TokenStatus, str]) -> List[MusicToken]:
        return self.registry.tokens_by_status(status)

    def get_trending_tokens(self, limit: int = 10) -> List[MusicToken]:
        return self.registry.trending_tokens(limit)

    def get_market_stats(self) -> MarketStats:
        return self.registry.market_stats()

    def get_lifetime_volume(self, token_id: str) -> float:
        return self.events.lifetime_volume(token_id)

    # Commands
    def create_token(self, request: CreateTokenRequest) -> TokenCreationResult:
        return self.registry.create_token(request)

    def execute_trade(self, token_id: str, amount: float, side: Union[TradeSide, str]) -> bool:
        return self.registry.execute_trade(token_id, amount, side)

    # Quotes
    def calculate_tokens_for_reserve(self, token: MusicToken, reserve_amount: float) -> float:
        return tokens_for_reserve(token, reserve_amount)

    def calculate_reserve_for_tokens(self, token: MusicToken, token_amount: float) -> float:
        return reserve_for_tokens(token, token_amount)

    def calculate_price_impact(self, token: MusicToken, amount: float, is_buy: bool) -> float:
        return price_impact(token, amount, is_buy)

    def calculate_roi_projection(self, token: MusicToken, investment_amount: float) -> ROIProjection:
        return calculate_roi_projection(token, investment_amount, self.config)

    # Event simulation
    def simulate_tour_announcement(self, token_id: str) -> bool:
        return self.events.tour_announcement(token_id)

    def simulate_graduation(self, token_id: str) -> bool:
        return self.events.graduate_to_exchange(token_id)

    def instant_graduation(self, token_id: str) -> bool:
        return self.events.instant_graduate(token_id)

    def simulate_exchange_demand(self, token_id: str) -> bool:
        return self.events.exchange_demand_surge(token_id)

    def update_realistic_market_stats(self) -> None:
        """Maintenance: replace all tokens with the touring-season data set."""
        self.registry.replace_all(touring_tokens(self.now()))

    # Lifecycle
    def start_simulation(self) -> None:
        self.clock.start()

    def stop_simulation(self) -> None:
        self.clock.stop()

    def update_config(self, on_status_update: Optional[Callable[[str], None]] = None) -> None:
        self.registry.update_config(on_status_update=on_status_update)
