"""Musika Marketplace Simulation Package

Pricing engine and simulation framework for tokenized music publishing rights:
- Bonding-curve quotes, linear price impact and ROI projection
- In-memory token registry with bounded trade history
- Periodic price drift and the launching -> trading -> ipo -> graduated lifecycle
- Tour announcement, exchange graduation and demand-surge events
- AgentPy batch runs with synthetic fan and collector traders
- Polars metrics and seaborn reporting
"""

__version__ = "0.1.0"

# Import core simulation components
from .core import MarketplaceSimulation, MarketplaceModel
from .config import BondingCurveConfig, SimulationConfig, MARKET_SCENARIOS
from .state import (
    TokenStatus,
    TradeSide,
    SongMetadata,
    SocialLinks,
    TradeRecord,
    TradeHistory,
    MusicToken,
    CreateTokenRequest,
    TokenCreationResult,
    MarketStats,
    ROIProjection,
    MarketSnapshot,
    SimulationEvent,
    SimulationResults,
)

# Import pricing engine
from .pricing import (
    price_at,
    tokens_for_reserve,
    reserve_for_tokens,
    price_impact,
    curve_price_impact,
    calculate_roi_projection,
    classify_risk,
)
from .registry import TokenRegistry
from .market import MarketSimulationClock, evaluate_status_transition
from .events import EventSimulator
from .service import MarketplaceService
from .catalog import example_tokens, touring_tokens

# Import participant system
from .participants import (
    ParticipantConfig,
    ParticipantPool,
    TradeOrder,
    calculate_volume_by_type,
)

# Import metrics and reporting
from .metrics import (
    snapshots_to_dataframe,
    events_to_dataframe,
    calculate_token_summary,
    calculate_market_timeline,
    calculate_key_metrics,
    export_metrics_to_file,
)
from .plotting import create_summary_plots, generate_summary_report

__all__ = [
    # Core simulation
    "MarketplaceSimulation",
    "MarketplaceModel",
    "SimulationConfig",
    "BondingCurveConfig",
    "MARKET_SCENARIOS",

    # State
    "TokenStatus",
    "TradeSide",
    "SongMetadata",
    "SocialLinks",
    "TradeRecord",
    "TradeHistory",
    "MusicToken",
    "CreateTokenRequest",
    "TokenCreationResult",
    "MarketStats",
    "ROIProjection",
    "MarketSnapshot",
    "SimulationEvent",
    "SimulationResults",

    # Pricing engine
    "price_at",
    "tokens_for_reserve",
    "reserve_for_tokens",
    "price_impact",
    "curve_price_impact",
    "calculate_roi_projection",
    "classify_risk",
    "TokenRegistry",
    "MarketSimulationClock",
    "evaluate_status_transition",
    "EventSimulator",
    "MarketplaceService",
    "example_tokens",
    "touring_tokens",

    # Participants
    "ParticipantConfig",
    "ParticipantPool",
    "TradeOrder",
    "calculate_volume_by_type",

    # Metrics and reporting
    "snapshots_to_dataframe",
    "events_to_dataframe",
    "calculate_token_summary",
    "calculate_market_timeline",
    "calculate_key_metrics",
    "export_metrics_to_file",
    "create_summary_plots",
    "generate_summary_report",
]
