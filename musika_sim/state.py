"""Core data structures for marketplace state."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .config import BondingCurveConfig, SimulationConfig


class TokenStatus(str, Enum):
    """Lifecycle stage of a music token (launching -> trading -> ipo -> graduated)."""
    LAUNCHING = "launching"
    TRADING = "trading"
    IPO = "ipo"
    GRADUATED = "graduated"


ACTIVE_STATUSES = (TokenStatus.TRADING, TokenStatus.IPO, TokenStatus.GRADUATED)


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass
class SongMetadata:
    """Descriptive metadata for the underlying composition."""
    title: str = ""
    artist: str = ""
    isrc: str = ""
    genre: str = ""
    duration: str = ""
    bpm: int = 0
    key: str = ""
    release_date: str = ""
    composition_date: str = ""
    publishing_revenue: Optional[float] = None
    artist_allocation: Optional[float] = None


@dataclass
class SocialLinks:
    spotify: Optional[str] = None
    apple_music: Optional[str] = None
    youtube: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None


@dataclass(frozen=True)
class TradeRecord:
    """One executed trade; never modified after it is recorded."""
    timestamp: datetime
    price: float        # Price after the trade was applied
    volume: float       # Reserve-currency amount traded
    side: TradeSide


class TradeHistory:
    """Bounded trade history, oldest entries evicted first."""

    def __init__(self, max_entries: int = 100, records: Optional[List[TradeRecord]] = None) -> None:
        self.max_entries = max_entries
        self.records: List[TradeRecord] = []
        for record in records or []:
            self.add(record)

    def add(self, record: TradeRecord) -> None:
        self.records.append(record)
        overflow = len(self.records) - self.max_entries
        if overflow > 0:
            del self.records[:overflow]

    def total_volume(self) -> float:
        return sum(record.volume for record in self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[TradeRecord]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]


# Numeric fields stored as floats whatever literal they were built from
_FLOAT_FIELDS = (
    "initial_price", "current_price", "total_supply", "circulating_supply",
    "publishing_rights", "projected_revenue", "projected_dividends", "roi",
    "volume_24h", "price_change_24h", "price_change_7d",
)


@dataclass
class MusicToken:
    """A tokenized share of publishing rights for one song.

    ``market_cap`` is derived: it is recomputed from ``current_price`` and
    ``circulating_supply`` whenever either changes and cannot be passed in.
    Price mutations should go through ``apply_price`` so the floor and the
    market cap are updated together.
    """
    id: str
    name: str
    symbol: str
    artist: str
    initial_price: float
    current_price: float
    total_supply: float
    circulating_supply: float
    publishing_rights: float               # Percentage, 0-100
    projected_revenue: float
    projected_dividends: float
    roi: float                             # Fractional yield estimate
    launch_date: datetime
    description: str = ""
    isrc: str = ""
    status: TokenStatus = TokenStatus.LAUNCHING
    volume_24h: float = 0.0
    price_change_24h: float = 0.0          # Percent
    price_change_7d: float = 0.0           # Percent
    graduation_date: Optional[datetime] = None
    ipo_date: Optional[datetime] = None
    song_metadata: SongMetadata = field(default_factory=SongMetadata)
    social_links: SocialLinks = field(default_factory=SocialLinks)
    trading_history: TradeHistory = field(default_factory=TradeHistory)
    curve: BondingCurveConfig = field(default_factory=BondingCurveConfig)
    creator: str = "mock-wallet-key"
    transaction_hash: str = ""
    mint_address: str = ""
    market_cap: float = field(init=False, default=0.0)

    def __post_init__(self):
        self.status = TokenStatus(self.status)
        for name in _FLOAT_FIELDS:
            setattr(self, name, float(getattr(self, name)))
        if isinstance(self.trading_history, list):
            self.trading_history = TradeHistory(records=self.trading_history)
        if not (self.current_price > 0 and math.isfinite(self.current_price)):
            raise ValueError(f"Token {self.symbol}: current price must be positive, got {self.current_price}")
        if self.circulating_supply > self.total_supply:
            raise ValueError(f"Token {self.symbol}: circulating supply exceeds total supply")
        if not 0 <= self.publishing_rights <= 100:
            raise ValueError(f"Token {self.symbol}: publishing rights must be within 0-100")
        self.refresh_market_cap()

    def refresh_market_cap(self) -> None:
        self.market_cap = self.current_price * self.circulating_supply

    def apply_price(self, new_price: float, min_price: float) -> None:
        """Set the price (clamped to ``min_price``) and recompute market cap."""
        self.current_price = max(min_price, new_price)
        self.refresh_market_cap()

    def lifetime_volume(self) -> float:
        return self.trading_history.total_volume()

    def days_since_launch(self, now: datetime) -> float:
        return (now - self.launch_date).total_seconds() / 86_400.0


@dataclass
class CreateTokenRequest:
    """Parameters a creator submits to list a new song."""
    name: str
    symbol: str
    artist: str
    publishing_rights: float
    initial_price: float
    initial_supply: float
    description: str = ""
    isrc: str = ""
    compositional_rights: float = 0.0
    royalty_share: float = 0.0
    image_url: Optional[str] = None
    song_metadata: SongMetadata = field(default_factory=SongMetadata)
    social_links: SocialLinks = field(default_factory=SocialLinks)


@dataclass
class TokenCreationResult:
    success: bool
    token_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class MarketStats:
    """Aggregate statistics across the registry."""
    total_tokens: int = 0
    total_market_cap: float = 0.0
    total_volume_24h: float = 0.0
    active_tokens: int = 0
    graduated_tokens: int = 0
    average_roi: float = 0.0


@dataclass(frozen=True)
class ROIProjection:
    """Forward projection for a prospective purchase."""
    current_price: float
    projected_price: float
    potential_return: float
    break_even_price: float
    time_to_break_even: float   # Days
    risk_level: str             # 'low' | 'medium' | 'high'
    tokens_to_buy: float = 0.0


@dataclass
class MarketSnapshot:
    """State of one token at one simulation step.

    Collected by the batch model for metrics and plotting.
    """
    step: int
    timestamp: datetime
    token_id: str
    symbol: str
    status: str
    price: float
    market_cap: float
    volume_24h: float
    price_change_24h: float
    roi: float
    trades: int = 0                 # Trades executed this step
    traded_volume: float = 0.0      # Reserve currency traded this step


@dataclass
class SimulationEvent:
    """A discrete event fired during a batch run."""
    step: int
    timestamp: datetime
    token_id: str
    kind: str                       # 'tour', 'graduation', 'demand_surge', 'status_change'
    detail: str = ""


@dataclass
class SimulationResults:
    """Results from a complete batch run."""
    snapshots: List[MarketSnapshot]
    events: List[SimulationEvent]
    final_stats: MarketStats
    config: SimulationConfig
    participant_volumes: Dict[str, float] = field(default_factory=dict)
