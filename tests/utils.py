"""Utility helpers for lightweight test execution without pytest.

Provides assertion helpers, file utilities and deterministic stand-ins for
the random and time sources injected into the pricing engine."""

import math
import os
from datetime import datetime, timedelta

from musika_sim.state import MusicToken, TradeHistory, TradeRecord, TradeSide


FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


def assert_close(actual: float, expected: float, rel: float = 1e-4, msg: str = ""):
    """Assert that two floating point values are approximately equal.

    Uses relative tolerance so curve and projection results can be compared
    without depending on the last bits of floating-point rounding.
    """
    if not math.isclose(actual, expected, rel_tol=rel, abs_tol=1e-12):
        suffix = f" ({msg})" if msg else ""
        raise AssertionError(f"Expected {expected} ± {rel}, got {actual}{suffix}")


def expect_raises(exception, func, *args, **kwargs):
    """Assert that a function raises a specific exception."""
    try:
        func(*args, **kwargs)
    except exception:
        return
    raise AssertionError(f"Expected {exception.__name__} to be raised")


def file_exists(path: str) -> bool:
    return os.path.exists(path)


class ScriptedRandom:
    """Random source that replays fixed fractions of each requested range.

    Each ``uniform(low, high)`` call consumes the next fraction ``f`` and
    returns ``low + f * (high - low)``; the last fraction repeats once the
    script runs out.
    """

    def __init__(self, *fractions: float):
        self.fractions = list(fractions) or [0.5]
        self.calls = 0

    def uniform(self, low: float, high: float) -> float:
        index = min(self.calls, len(self.fractions) - 1)
        self.calls += 1
        return low + self.fractions[index] * (high - low)


class FixedClock:
    """Callable time source that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def make_token(token_id: str = "t1", price: float = 0.32, circulating: float = 450_000,
               total: float = 500_000, status: str = "launching", roi: float = 0.28,
               launched_days_ago: float = 0.0, volumes=(), now: datetime = FIXED_NOW,
               volume_24h: float = 0.0) -> MusicToken:
    """Build a token with sensible defaults; ``volumes`` seeds the trade history."""
    history = TradeHistory(records=[
        TradeRecord(timestamp=now - timedelta(days=1), price=price, volume=volume, side=TradeSide.BUY)
        for volume in volumes
    ])
    return MusicToken(
        id=token_id,
        name=f"Song {token_id}",
        symbol=token_id.upper(),
        artist="Test Artist",
        initial_price=price,
        current_price=price,
        total_supply=total,
        circulating_supply=circulating,
        publishing_rights=80,
        projected_revenue=85_000,
        projected_dividends=12_750,
        roi=roi,
        status=status,
        launch_date=now - timedelta(days=launched_days_ago),
        volume_24h=volume_24h,
        trading_history=history,
    )


def assert_market_cap_consistent(token: MusicToken) -> None:
    assert_close(token.market_cap, token.current_price * token.circulating_supply,
                 rel=1e-9, msg=f"market cap of {token.symbol}")
