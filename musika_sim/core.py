"""Batch marketplace simulation using the AgentPy framework.

The live app runs the pricing engine on a wall-clock timer. For analysis the
same registry, clock and event simulator are driven here in simulated time:
each model step advances the clock by ``step_hours``, lets synthetic traders
place orders, sweeps drift and lifecycle transitions, and optionally fires
tour, graduation and demand events.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

import agentpy as ap
import numpy as np

from .catalog import example_tokens
from .config import SimulationConfig
from .events import EventSimulator
from .market import MarketSimulationClock
from .participants import ParticipantConfig, ParticipantPool
from .registry import TokenRegistry
from .state import (
    MarketSnapshot,
    MusicToken,
    SimulationEvent,
    SimulationResults,
    TokenStatus,
)


DEFAULT_START_TIME = datetime(2024, 1, 1)


class MarketplaceModel(ap.Model):
    """Agent-based model of the music-rights marketplace.

    Uses AgentPy's setup/step lifecycle, random number generator and
    ``record`` data collection.
    """

    def setup(self) -> None:
        """Initialize the model using AgentPy's setup lifecycle."""
        self.simulation_config: SimulationConfig = self.p.get('simulation_config')
        if self.simulation_config is None:
            # Reconstruct config from individual parameters for experiment compatibility
            self.simulation_config = SimulationConfig()
            for key, value in self.p.items():
                if hasattr(self.simulation_config, key):
                    setattr(self.simulation_config, key, value)
        config = self.simulation_config

        seed = self.p.get('seed')
        if seed is not None:
            self.random.seed(seed)

        # Simulated time
        self.step_count: int = 0
        self.step_hours: float = self.p.get('step_hours', config.step_hours)
        self.current_time: datetime = self.p.get('start_time', DEFAULT_START_TIME)
        self.hours_since_volume_reset: float = 0.0

        # Pricing engine driven by the model's clock and RNG
        self.registry = TokenRegistry(config, now=self._simulated_now)
        self.clock = MarketSimulationClock(self.registry, config, rng=self.random, now=self._simulated_now)
        self.events = EventSimulator(self.registry, config, rng=self.random, now=self._simulated_now)
        if self.p.get('load_examples', config.load_examples):
            self.registry.replace_all(example_tokens(self.current_time))

        # Participant system (optional)
        self.participants: Optional[ParticipantPool] = None
        if self.p.get('enable_participants', config.enable_participant_behavior):
            participant_config = self.p.get('participant_config', ParticipantConfig())
            self.participants = ParticipantPool(participant_config, np.random.RandomState(seed))

        # Data collection
        self.snapshots: List[MarketSnapshot] = []
        self.event_log: List[SimulationEvent] = []
        self.participant_volumes: Dict[str, float] = {}

        self.record('initial_setup_complete', True)

    def _simulated_now(self) -> datetime:
        return self.current_time

    def step(self) -> None:
        """Execute one simulation step using AgentPy's step lifecycle."""
        self.step_count += 1
        self.current_time += timedelta(hours=self.step_hours)

        trades, traded_volume = self._execute_participant_orders()

        statuses_before = {token.id: token.status for token in self.registry.all_tokens()}
        self.clock.tick()
        for token in self.registry.all_tokens():
            previous = statuses_before.get(token.id)
            if previous is not None and token.status is not previous:
                self._log_event(token, "status_change", f"{previous.value} -> {token.status.value}")

        self._fire_events()

        for token in self.registry.all_tokens():
            self.snapshots.append(MarketSnapshot(
                step=self.step_count,
                timestamp=self.current_time,
                token_id=token.id,
                symbol=token.symbol,
                status=token.status.value,
                price=token.current_price,
                market_cap=token.market_cap,
                volume_24h=token.volume_24h,
                price_change_24h=token.price_change_24h,
                roi=token.roi,
                trades=trades.get(token.id, 0),
                traded_volume=traded_volume.get(token.id, 0.0),
            ))

        stats = self.registry.market_stats()
        self.record('step', self.step_count)
        self.record('total_market_cap', stats.total_market_cap)
        self.record('total_volume_24h', stats.total_volume_24h)
        self.record('active_tokens', stats.active_tokens)
        self.record('graduated_tokens', stats.graduated_tokens)

        # Roll the 24h volume window after it has been captured
        self.hours_since_volume_reset += self.step_hours
        if self.hours_since_volume_reset >= 24.0:
            self.registry.reset_daily_volume()
            self.hours_since_volume_reset = 0.0

    def _execute_participant_orders(self):
        trades: Dict[str, int] = {}
        traded_volume: Dict[str, float] = {}
        if not self.participants:
            return trades, traded_volume

        orders = self.participants.generate_orders(self.step_count, self.step_hours, self.registry.all_tokens())
        for order in orders:
            if not self.registry.execute_trade(order.token_id, order.amount, order.side):
                continue
            trades[order.token_id] = trades.get(order.token_id, 0) + 1
            traded_volume[order.token_id] = traded_volume.get(order.token_id, 0.0) + order.amount
            self.participant_volumes[order.participant_type] = (
                self.participant_volumes.get(order.participant_type, 0.0) + order.amount
            )
        return trades, traded_volume

    def _fire_events(self) -> None:
        config = self.simulation_config
        for token in self.registry.all_tokens():
            if config.tour_probability > 0 and self.random.random() < config.tour_probability:
                if self.events.tour_announcement(token.id):
                    self._log_event(token, "tour", f"price {token.current_price:.4f}")

            if (config.auto_graduate
                    and token.status is not TokenStatus.GRADUATED
                    and token.lifetime_volume() >= config.graduation_volume_threshold):
                if self.events.graduate_to_exchange(token.id):
                    self._log_event(token, "graduation", f"lifetime volume {token.lifetime_volume():.2f}")

            if (token.status is TokenStatus.GRADUATED
                    and config.demand_surge_probability > 0
                    and self.random.random() < config.demand_surge_probability):
                if self.events.exchange_demand_surge(token.id):
                    self._log_event(token, "demand_surge", f"price {token.current_price:.4f}")

    def _log_event(self, token: MusicToken, kind: str, detail: str) -> None:
        self.event_log.append(SimulationEvent(
            step=self.step_count,
            timestamp=self.current_time,
            token_id=token.id,
            kind=kind,
            detail=detail,
        ))


class MarketplaceSimulation:
    """High-level interface: configure once, run for a number of steps."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.config.validate()
        self._last_results: Optional[SimulationResults] = None

    def run(self, steps: int, start_time: Optional[datetime] = None) -> SimulationResults:
        params = self.config.to_agentpy_params()
        if start_time is not None:
            params['start_time'] = start_time

        model = MarketplaceModel(params)
        model.setup()
        for _ in range(steps):
            model.step()

        self._last_results = SimulationResults(
            snapshots=model.snapshots,
            events=model.event_log,
            final_stats=model.registry.market_stats(),
            config=self.config,
            participant_volumes=dict(model.participant_volumes),
        )
        return self._last_results

    def get_dataframe(self):
        """Polars DataFrame of the last run's snapshots, or None before any run."""
        from .metrics import snapshots_to_dataframe

        if not self._last_results:
            return None
        return snapshots_to_dataframe(self._last_results.snapshots)
