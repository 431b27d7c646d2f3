"""In-memory token registry: creation, trading and aggregate queries."""

import logging
import math
import numbers
import threading
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from .config import SimulationConfig
from .pricing import price_impact
from .state import (
    ACTIVE_STATUSES,
    CreateTokenRequest,
    MarketStats,
    MusicToken,
    TokenCreationResult,
    TokenStatus,
    TradeHistory,
    TradeRecord,
    TradeSide,
)

logger = logging.getLogger(__name__)


def _reference(prefix: str) -> str:
    """Synthetic identifier such as ``token_1718000000000_3f9a1c2be``."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class TokenRegistry:
    """Authoritative id -> token store.

    Every read-modify-write runs under ``lock`` so the clock thread and
    direct callers never observe a price without its matching market cap.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        now: Optional[Callable[[], datetime]] = None,
        on_status_update: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.now = now or datetime.now
        self.on_status_update = on_status_update
        self.lock = threading.RLock()
        self._tokens: Dict[str, MusicToken] = {}

    # --- Maintenance --------------------------------------------------------

    def add(self, token: MusicToken) -> None:
        with self.lock:
            self._tokens[token.id] = token

    def replace_all(self, tokens: Iterable[MusicToken]) -> None:
        """Bulk-replace the registry contents (reset to a data set)."""
        with self.lock:
            self._tokens = {token.id: token for token in tokens}
        logger.info("Registry reset with %d tokens", len(self._tokens))

    def reset_daily_volume(self) -> None:
        """Close the rolling 24h window: zero every token's ``volume_24h``."""
        with self.lock:
            for token in self._tokens.values():
                token.volume_24h = 0.0

    def update_config(self, on_status_update: Optional[Callable[[str], None]] = None) -> None:
        if on_status_update is not None:
            self.on_status_update = on_status_update

    def _notify(self, status: str) -> None:
        if self.on_status_update:
            self.on_status_update(status)

    # --- Creation -----------------------------------------------------------

    def calculate_ipo_value(self, request: CreateTokenRequest) -> float:
        """IPO valuation from a simulated annual publishing revenue, in cents precision."""
        base_revenue = request.initial_price * request.initial_supply * 100  # Simulated annual revenue
        publishing_revenue = base_revenue * (request.publishing_rights / 100)
        projected_dividends = publishing_revenue * (self.config.base_roi / 100)
        return round(projected_dividends * self.config.ipo_multiplier, 2)

    def create_token(self, request: CreateTokenRequest) -> TokenCreationResult:
        """Create and register a token; failures come back as a result, not an exception."""
        try:
            self._notify("Creating token...")
            self._validate_request(request)

            ipo_value = self.calculate_ipo_value(request)
            tx_signature = _reference("tx")
            token = self._build_token(request, ipo_value, tx_signature)

            with self.lock:
                self._tokens[token.id] = token

            logger.info("Created token %s (%s), IPO value %.2f", token.name, token.symbol, ipo_value)
            self._notify("Token created successfully!")
            return TokenCreationResult(success=True, token_id=token.id, transaction_hash=tx_signature)

        except Exception as exc:
            logger.error("Token creation failed: %s", exc)
            self._notify("Token creation failed")
            return TokenCreationResult(success=False, error=str(exc) or exc.__class__.__name__)

    @staticmethod
    def _validate_request(request: CreateTokenRequest) -> None:
        if not request.name or not request.symbol:
            raise ValueError("Token name and symbol are required")
        if not (math.isfinite(request.initial_supply) and request.initial_supply > 0):
            raise ValueError("Initial supply must be positive")
        if not (math.isfinite(request.initial_price) and request.initial_price > 0):
            raise ValueError("Initial price must be positive")
        if not 0 <= request.publishing_rights <= 100:
            raise ValueError("Publishing rights must be between 0 and 100")

    def _build_token(self, request: CreateTokenRequest, ipo_value: float, tx_signature: str) -> MusicToken:
        price = ipo_value / request.initial_supply
        if price <= 0:
            raise ValueError("IPO valuation rounds to zero; raise price, supply or rights")

        projected_revenue = ipo_value / self.config.ipo_multiplier
        projected_dividends = projected_revenue * (self.config.base_roi / 100)

        return MusicToken(
            id=_reference("token"),
            name=request.name,
            symbol=request.symbol,
            artist=request.artist,
            description=request.description,
            isrc=request.isrc or "",
            initial_price=price,
            current_price=price,
            total_supply=request.initial_supply,
            circulating_supply=request.initial_supply * self.config.circulating_fraction,
            publishing_rights=request.publishing_rights,
            projected_revenue=projected_revenue,
            projected_dividends=projected_dividends,
            roi=self.config.base_roi,
            status=TokenStatus.LAUNCHING,
            launch_date=self.now(),
            song_metadata=replace(request.song_metadata),
            social_links=replace(request.social_links),
            trading_history=TradeHistory(self.config.history_limit),
            curve=replace(self.config.curve),
            transaction_hash=tx_signature,
            mint_address=_reference("mint"),
        )

    # --- Trading ------------------------------------------------------------

    def execute_trade(self, token_id: str, amount: float, side: Union[TradeSide, str]) -> bool:
        """Apply a buy or sell of ``amount`` reserve currency to the token's price.

        No holder balance is checked. Returns False, without mutating
        anything, for unknown tokens, unknown sides or invalid amounts.
        """
        try:
            side = TradeSide(side)
        except ValueError:
            logger.warning("Rejected trade on %s: unknown side %r", token_id, side)
            return False

        if not isinstance(amount, numbers.Real) or not math.isfinite(amount) or amount < 0:
            logger.warning("Rejected trade on %s: invalid amount %r", token_id, amount)
            return False

        with self.lock:
            token = self._tokens.get(token_id)
            if token is None:
                return False

            impact = price_impact(token, amount, side is TradeSide.BUY)
            token.apply_price(token.current_price * (1 + impact), self.config.min_price)
            token.volume_24h += amount
            token.trading_history.add(TradeRecord(
                timestamp=self.now(),
                price=token.current_price,
                volume=amount,
                side=side,
            ))

        logger.debug("Trade %s %.2f on %s -> price %.6f", side.value, amount, token.symbol, token.current_price)
        return True

    # --- Queries ------------------------------------------------------------

    def get_token(self, token_id: str) -> Optional[MusicToken]:
        return self._tokens.get(token_id)

    def all_tokens(self) -> List[MusicToken]:
        with self.lock:
            return list(self._tokens.values())

    def tokens_by_status(self, status: Union[TokenStatus, str]) -> List[MusicToken]:
        try:
            status = TokenStatus(status)
        except ValueError:
            logger.warning("Unknown token status %r", status)
            return []
        return [token for token in self.all_tokens() if token.status is status]

    def trending_tokens(self, limit: int = 10) -> List[MusicToken]:
        """Active tokens ordered by 24h volume, highest first."""
        active = [token for token in self.all_tokens() if token.status in ACTIVE_STATUSES]
        active.sort(key=lambda token: token.volume_24h, reverse=True)
        return active[:max(0, limit)]

    def lifetime_volume(self, token_id: str) -> float:
        token = self._tokens.get(token_id)
        if token is None:
            return 0.0
        return token.lifetime_volume()

    def market_stats(self) -> MarketStats:
        tokens = self.all_tokens()
        if not tokens:
            return MarketStats()

        return MarketStats(
            total_tokens=len(tokens),
            total_market_cap=sum(token.market_cap for token in tokens),
            total_volume_24h=sum(token.volume_24h for token in tokens),
            active_tokens=sum(1 for token in tokens if token.status in ACTIVE_STATUSES),
            graduated_tokens=sum(1 for token in tokens if token.status is TokenStatus.GRADUATED),
            average_roi=sum(token.roi for token in tokens) / len(tokens),
        )

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token_id: str) -> bool:
        return token_id in self._tokens
