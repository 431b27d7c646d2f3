"""Synthetic trader behavior for batch marketplace runs."""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from abc import ABC, abstractmethod


@dataclass
class ParticipantConfig:
    """Configuration for participant behavior parameters."""

    # Fan trader parameters
    fan_count: int = 50
    fan_trades_per_day: float = 1.5
    fan_size_mean: float = 40.0  # reserve currency
    fan_size_variance: float = 0.8
    fan_momentum_sensitivity: float = 0.3

    # Collector parameters
    collector_count: int = 5
    collector_trades_per_day: float = 4.0
    collector_size_mean: float = 600.0  # reserve currency
    collector_size_variance: float = 1.0
    collector_reversion_sensitivity: float = 0.2


@dataclass
class TradeOrder:
    """Represents a trade order from a participant."""
    participant_id: str
    participant_type: str
    token_id: str
    amount: float  # reserve currency
    is_buy: bool
    step: int

    @property
    def side(self) -> str:
        return "buy" if self.is_buy else "sell"


class ParticipantBase(ABC):
    """Base class for all market participants."""

    participant_type = "base"

    def __init__(self, participant_id: str, config: ParticipantConfig, rng: np.random.RandomState):
        self.id = participant_id
        self.config = config
        self.rng = rng
        self.last_action_step = -1

    @abstractmethod
    def should_trade(self, step_hours: float) -> bool:
        """Determine if participant trades during this step."""
        pass

    @abstractmethod
    def generate_trade(self, step: int, step_hours: float, token_id: str,
                       price_change: float) -> Optional[TradeOrder]:
        """Generate a trade order if participant decides to trade."""
        pass

    def _trade_probability(self, trades_per_day: float, step_hours: float) -> float:
        return min(1.0, trades_per_day * step_hours / 24.0)


class FanTrader(ParticipantBase):
    """Small-ticket fan who buys into momentum."""

    participant_type = "fan"

    def should_trade(self, step_hours: float) -> bool:
        probability = self._trade_probability(self.config.fan_trades_per_day, step_hours)
        return self.rng.random_sample() < probability

    def generate_trade(self, step: int, step_hours: float, token_id: str,
                       price_change: float) -> Optional[TradeOrder]:
        if not self.should_trade(step_hours):
            return None

        amount = self.rng.lognormal(np.log(self.config.fan_size_mean), self.config.fan_size_variance)

        # price_change arrives in percent; fans chase recent gains
        buy_probability = 0.6 + (price_change / 100.0) * self.config.fan_momentum_sensitivity
        is_buy = self.rng.random_sample() < min(0.95, max(0.05, buy_probability))

        self.last_action_step = step
        return TradeOrder(
            participant_id=self.id,
            participant_type=self.participant_type,
            token_id=token_id,
            amount=float(amount),
            is_buy=is_buy,
            step=step,
        )


class CollectorTrader(ParticipantBase):
    """Larger rights collector that fades short-term moves."""

    participant_type = "collector"

    def should_trade(self, step_hours: float) -> bool:
        probability = self._trade_probability(self.config.collector_trades_per_day, step_hours)
        return self.rng.random_sample() < probability

    def generate_trade(self, step: int, step_hours: float, token_id: str,
                       price_change: float) -> Optional[TradeOrder]:
        if not self.should_trade(step_hours):
            return None

        amount = self.rng.lognormal(np.log(self.config.collector_size_mean), self.config.collector_size_variance)

        buy_probability = 0.5 - (price_change / 100.0) * self.config.collector_reversion_sensitivity
        is_buy = self.rng.random_sample() < min(0.95, max(0.05, buy_probability))

        self.last_action_step = step
        return TradeOrder(
            participant_id=self.id,
            participant_type=self.participant_type,
            token_id=token_id,
            amount=float(amount),
            is_buy=is_buy,
            step=step,
        )


class ParticipantPool:
    """Manages all market participants and their order flow."""

    def __init__(self, config: ParticipantConfig, rng: np.random.RandomState):
        self.config = config
        self.rng = rng
        self.participants: List[ParticipantBase] = []
        self._initialize_participants()

    def _initialize_participants(self):
        for i in range(self.config.fan_count):
            self.participants.append(FanTrader(f"fan_{i}", self.config, self.rng))
        for i in range(self.config.collector_count):
            self.participants.append(CollectorTrader(f"collector_{i}", self.config, self.rng))

    def generate_orders(self, step: int, step_hours: float, tokens: Sequence) -> List[TradeOrder]:
        """Generate orders for this step; each participant picks one token at random."""
        orders: List[TradeOrder] = []
        if not tokens:
            return orders

        for participant in self.participants:
            token = tokens[self.rng.randint(len(tokens))]
            order = participant.generate_trade(step, step_hours, token.id, token.price_change_24h)
            if order:
                orders.append(order)

        return orders

    def get_participant_metrics(self) -> Dict[str, int]:
        return {
            "total_participants": len(self.participants),
            "fan_count": self.config.fan_count,
            "collector_count": self.config.collector_count,
        }


def calculate_volume_by_type(orders: List[TradeOrder]) -> Dict[str, float]:
    """Sum order amounts per participant type."""
    totals: Dict[str, float] = {}
    for order in orders:
        totals[order.participant_type] = totals.get(order.participant_type, 0.0) + order.amount
    return totals
