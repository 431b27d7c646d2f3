"""Bonding-curve pricing utilities and ROI projection.

Every function here is pure: tokens are read, never mutated. Inputs that
would produce NaN or infinity (zero reserve, negative amounts, non-finite
values) resolve to 0 so callers can treat the amount as unavailable.
"""

import math
import numbers
from typing import Optional

from .config import BondingCurveConfig, SimulationConfig
from .state import MusicToken, ROIProjection


# Reserve, supply or market cap at or below this is treated as empty
EPSILON = 1e-12


def _valid_amount(amount: float) -> bool:
    return isinstance(amount, numbers.Real) and math.isfinite(amount) and amount > 0


def _curve(token: MusicToken, curve: Optional[BondingCurveConfig]) -> BondingCurveConfig:
    return curve if curve is not None else token.curve


def available_reserve(token: MusicToken) -> float:
    """Reserve currency backing the circulating supply at the current price."""
    return token.circulating_supply * token.current_price


# Curve evaluation and conversions
# The marginal price follows k * supply^(reserve_ratio - 1); conversions use
# the closed-form reserve curve anchored at the token's current reserve so
# that buying with R and selling the result back returns R.

def price_at(token: MusicToken, token_delta: float = 0.0,
             curve: Optional[BondingCurveConfig] = None) -> float:
    """Marginal price at ``circulating_supply + token_delta``.

    Returns NaN when the shifted supply is not positive; callers must reject
    such deltas before using the result.
    """
    params = _curve(token, curve)
    supply = token.circulating_supply + token_delta
    if supply <= 0:
        return math.nan
    return params.k * supply ** (params.reserve_ratio - 1)


def tokens_for_reserve(token: MusicToken, reserve_amount: float,
                       curve: Optional[BondingCurveConfig] = None) -> float:
    """Tokens obtainable by spending ``reserve_amount``.

    Amounts above the available reserve are capped at it.
    """
    if not _valid_amount(reserve_amount):
        return 0.0

    params = _curve(token, curve)
    supply = token.circulating_supply
    reserve = available_reserve(token)
    if supply <= EPSILON or reserve <= EPSILON:
        return 0.0

    fraction = min(1.0, reserve_amount / reserve)
    tokens = supply * (1 - (1 - fraction) ** (1 / params.reserve_ratio))
    if not math.isfinite(tokens):
        return 0.0
    return max(0.0, tokens)


def reserve_for_tokens(token: MusicToken, token_amount: float,
                       curve: Optional[BondingCurveConfig] = None) -> float:
    """Reserve currency returned by selling ``token_amount`` out of circulation.

    Amounts above the circulating supply are capped at it.
    """
    if not _valid_amount(token_amount):
        return 0.0

    params = _curve(token, curve)
    supply = token.circulating_supply
    reserve = available_reserve(token)
    if supply <= EPSILON or reserve <= EPSILON:
        return 0.0

    fraction = min(1.0, token_amount / supply)
    amount = reserve * (1 - (1 - fraction) ** params.reserve_ratio)
    if not math.isfinite(amount):
        return 0.0
    return max(0.0, amount)


def price_impact(token: MusicToken, amount: float, is_buy: bool,
                 curve: Optional[BondingCurveConfig] = None) -> float:
    """Linear price-impact estimate as a fraction (0.01 = 1%).

    ``(amount / market_cap) * price_impact_multiplier``, negative for sells.
    This is deliberately not derived from the curve integral.
    """
    if not _valid_amount(amount) or token.market_cap <= EPSILON:
        return 0.0
    impact = (amount / token.market_cap) * _curve(token, curve).price_impact_multiplier
    return impact if is_buy else -impact


def curve_price_impact(token: MusicToken, token_amount: float, is_buy: bool,
                       curve: Optional[BondingCurveConfig] = None) -> float:
    """Percent change from the current price to the curve's marginal price
    after moving ``token_amount`` into (buy) or out of (sell) circulation."""
    if not _valid_amount(token_amount) or token.current_price <= EPSILON:
        return 0.0
    delta = token_amount if is_buy else -token_amount
    new_price = price_at(token, delta, curve)
    if not math.isfinite(new_price):
        return 0.0
    return (new_price - token.current_price) / token.current_price * 100


# ROI projection

def classify_risk(market_cap: float, config: SimulationConfig) -> str:
    if market_cap < config.high_risk_market_cap:
        return "high"
    if market_cap < config.medium_risk_market_cap:
        return "medium"
    return "low"


def calculate_roi_projection(token: MusicToken, investment_amount: float,
                             config: SimulationConfig) -> ROIProjection:
    """Project the value of investing ``investment_amount`` over
    ``config.projection_days`` days at the token's ROI, compounded daily.

    Break-even fields are infinite when no tokens can be bought, or when the
    token does not grow and break-even sits above the current price.
    """
    tokens_to_buy = tokens_for_reserve(token, investment_amount)
    daily_growth_rate = token.roi / 365
    projected_price = token.current_price * (1 + daily_growth_rate) ** config.projection_days
    spent = investment_amount if _valid_amount(investment_amount) else 0.0
    potential_return = tokens_to_buy * projected_price - spent

    if tokens_to_buy <= EPSILON:
        break_even_price = math.inf
        time_to_break_even = math.inf
    else:
        break_even_price = investment_amount / tokens_to_buy
        if break_even_price <= token.current_price:
            time_to_break_even = 0.0
        elif daily_growth_rate <= 0:
            time_to_break_even = math.inf
        else:
            time_to_break_even = max(
                0.0,
                math.log(break_even_price / token.current_price) / math.log(1 + daily_growth_rate),
            )

    return ROIProjection(
        current_price=token.current_price,
        projected_price=projected_price,
        potential_return=potential_return,
        break_even_price=break_even_price,
        time_to_break_even=time_to_break_even,
        risk_level=classify_risk(token.market_cap, config),
        tokens_to_buy=tokens_to_buy,
    )
