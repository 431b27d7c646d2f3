"""Configuration for the Musika marketplace simulation."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .participants import ParticipantConfig


# Market regime presets for scenario runs
MARKET_SCENARIOS = {
    "default": {},
    "calm": {"price_volatility": 0.01},                                   # 1% max move per tick
    "volatile": {"price_volatility": 0.08},                               # 8% max move per tick
    "touring_season": {"tour_probability": 0.02, "demand_surge_probability": 0.05},
    "exchange_rush": {"auto_graduate": True, "demand_surge_probability": 0.1},
    "low_thresholds": {"graduation_threshold": 150_000.0, "ipo_threshold": 400_000.0},
}


@dataclass
class BondingCurveConfig:
    """Curve parameters attached to every token at creation."""

    k: float = 0.1                          # Bonding curve constant
    reserve_ratio: float = 0.5              # Reserve ratio (Bancor-style connector weight)
    price_impact_multiplier: float = 0.05   # How strongly a trade moves the price


@dataclass
class SimulationConfig:
    """Configuration bundle for the pricing engine and market simulation.

    Covers curve parameters, lifecycle thresholds, event-shock magnitudes and
    the batch-run controls used by ``MarketplaceSimulation``. Values are fixed
    once a registry or service is built from them.
    """

    # Curve parameters handed to newly created tokens
    curve: BondingCurveConfig = field(default_factory=BondingCurveConfig)

    # Revenue model
    base_roi: float = 0.15                  # Base ROI used for dividend projections
    ipo_multiplier: float = 20.0            # IPO value = projected dividends x multiplier
    circulating_fraction: float = 0.8       # Share of initial supply circulating at launch

    # Lifecycle thresholds (reserve-currency market cap)
    graduation_threshold: float = 1_000_000.0   # launching -> trading
    ipo_threshold: float = 5_000_000.0          # trading -> ipo, 2x for ipo -> graduated
    trading_min_days: float = 7.0
    ipo_min_days: float = 30.0
    graduation_min_days: float = 90.0

    # Periodic drift
    price_volatility: float = 0.03          # Max +/- fractional move per tick
    tick_interval_seconds: float = 5.0      # Wall-clock interval of the simulation clock
    min_price: float = 0.001                # Price floor after any mutation

    # Trade history
    history_limit: int = 100

    # Exchange graduation event
    graduation_volume_threshold: float = 20_000.0
    graduation_price_multiplier: float = 20.0
    graduation_volume_multiplier: float = 10.0

    # Tour announcement and exchange demand shocks
    tour_revenue_range: Tuple[float, float] = (0.5, 0.7)
    tour_price_range: Tuple[float, float] = (0.2, 0.4)
    demand_surge_range: Tuple[float, float] = (0.3, 0.6)
    demand_volume_multiplier: float = 2.0

    # ROI projection
    projection_days: int = 30
    high_risk_market_cap: float = 100_000.0
    medium_risk_market_cap: float = 1_000_000.0

    # Simulation controls
    random_seed: Optional[int] = None       # None = unseeded, as in the live app

    # Batch runs (MarketplaceSimulation)
    step_hours: float = 1.0                 # Simulated time advanced per model step
    tour_probability: float = 0.0           # Per token, per step
    demand_surge_probability: float = 0.0   # Per graduated token, per step
    auto_graduate: bool = False             # Try volume-gated graduation every step
    load_examples: bool = True              # Seed the registry with the example catalog
    enable_participant_behavior: bool = True
    participant_config: ParticipantConfig = field(default_factory=ParticipantConfig)

    def __post_init__(self):
        if self.participant_config is None:
            self.participant_config = ParticipantConfig()
        if isinstance(self.curve, dict):
            self.curve = BondingCurveConfig(**self.curve)
        # JSON calibration files hand ranges over as lists
        self.tour_revenue_range = tuple(self.tour_revenue_range)
        self.tour_price_range = tuple(self.tour_price_range)
        self.demand_surge_range = tuple(self.demand_surge_range)

    def validate(self) -> None:
        """Validate configuration against engine invariants."""
        assert self.curve.k > 0, "Curve constant k must be positive"
        assert 0 < self.curve.reserve_ratio <= 1.0, "Reserve ratio must be in (0, 1]"
        assert self.curve.price_impact_multiplier >= 0, "Price impact multiplier cannot be negative"

        assert self.base_roi >= 0, "Base ROI cannot be negative"
        assert self.ipo_multiplier > 0
        assert 0 < self.circulating_fraction <= 1.0, "Circulating fraction must be in (0, 1]"

        assert self.graduation_threshold >= 0
        assert self.ipo_threshold >= 0
        assert self.trading_min_days <= self.ipo_min_days <= self.graduation_min_days, \
            "Lifecycle day gates must be non-decreasing"

        assert 0 <= self.price_volatility < 1.0, "Volatility must be in [0, 1)"
        assert self.tick_interval_seconds > 0, "Tick interval must be positive"
        assert self.min_price > 0, "Price floor must be positive"
        assert self.history_limit > 0

        for name in ("tour_revenue_range", "tour_price_range", "demand_surge_range"):
            low, high = getattr(self, name)
            assert 0 <= low <= high, f"{name} must satisfy 0 <= low <= high"

        assert self.projection_days > 0
        assert self.high_risk_market_cap <= self.medium_risk_market_cap, \
            "Risk thresholds must be ordered high < medium"

        assert self.step_hours > 0
        assert 0 <= self.tour_probability <= 1.0
        assert 0 <= self.demand_surge_probability <= 1.0

    @classmethod
    def from_calibration_file(cls, file_path: str, overrides: Optional[dict] = None):
        """
        Load configuration (and participant parameters) from JSON.

        Structure:
        {
            "simulation_config": {...},
            "curve_config": {...},
            "participant_config": {...}
        }
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Calibration file not found: {file_path}")

        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)

        sim_config = data.get("simulation_config", {})
        curve_config_data = data.get("curve_config", {})
        participant_config_data = data.get("participant_config", {})

        overrides = overrides or {}
        sim_config.update(overrides.get("simulation_config", {}))
        curve_config_data.update(overrides.get("curve_config", {}))
        participant_config_data.update(overrides.get("participant_config", {}))

        sim_config["curve"] = BondingCurveConfig(**curve_config_data)
        sim_config["participant_config"] = ParticipantConfig(**participant_config_data)

        return cls(**sim_config)

    def to_agentpy_params(self) -> dict:
        """Convert configuration to an agentpy-friendly parameter dictionary."""
        return {
            "seed": self.random_seed,
            "step_hours": self.step_hours,
            "volatility": self.price_volatility,
            "tour_probability": self.tour_probability,
            "demand_surge_probability": self.demand_surge_probability,
            "auto_graduate": self.auto_graduate,
            "load_examples": self.load_examples,
            "enable_participants": self.enable_participant_behavior,
            "participant_config": self.participant_config,
            "curve_config": {
                "k": self.curve.k,
                "reserve_ratio": self.curve.reserve_ratio,
                "price_impact_multiplier": self.curve.price_impact_multiplier,
            },
            "lifecycle_config": {
                "graduation_threshold": self.graduation_threshold,
                "ipo_threshold": self.ipo_threshold,
                "graduation_volume_threshold": self.graduation_volume_threshold,
            },
            "simulation_config": self,
        }

    @classmethod
    def create_market_scenario(cls, scenario: str, **kwargs):
        """Convenience helper for common market regimes."""
        if scenario not in MARKET_SCENARIOS:
            available = ", ".join(sorted(MARKET_SCENARIOS.keys()))
            raise ValueError(f"Unknown market scenario '{scenario}'. Available: {available}")

        config_params = MARKET_SCENARIOS[scenario].copy()
        config_params.update(kwargs)

        return cls(**config_params)
