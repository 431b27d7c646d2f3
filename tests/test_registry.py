"""Token registry tests: creation, trading, history and aggregate queries."""

import math

from musika_sim.config import SimulationConfig
from musika_sim.registry import TokenRegistry
from musika_sim.state import CreateTokenRequest, TokenStatus, TradeSide
from tests.utils import FixedClock, assert_close, assert_market_cap_consistent, make_token


def _request(**overrides) -> CreateTokenRequest:
    params = dict(
        name="Test Song",
        symbol="TST",
        artist="Test Artist",
        publishing_rights=50,
        initial_price=0.1,
        initial_supply=1_000_000,
    )
    params.update(overrides)
    return CreateTokenRequest(**params)


def _registry(*tokens, config=None, now=None, on_status_update=None) -> TokenRegistry:
    registry = TokenRegistry(config or SimulationConfig(), now=now or FixedClock(), on_status_update=on_status_update)
    for token in tokens:
        registry.add(token)
    return registry


# --- Creation ------------------------------------------------------------------

def test_ipo_valuation():
    registry = _registry()
    # 0.1 * 1M * 100 revenue, 50% rights, 0.15% dividends, 20x multiple
    assert_close(registry.calculate_ipo_value(_request()), 150_000.0)


def test_create_token_success():
    clock = FixedClock()
    updates = []
    registry = _registry(now=clock, on_status_update=updates.append)

    result = registry.create_token(_request())

    assert result.success
    assert result.error is None
    assert result.transaction_hash.startswith("tx_")
    assert updates == ["Creating token...", "Token created successfully!"]

    token = registry.get_token(result.token_id)
    assert token is not None
    assert token.status is TokenStatus.LAUNCHING
    assert token.launch_date == clock()
    assert_close(token.current_price, 0.15)
    assert_close(token.initial_price, 0.15)
    assert_close(token.circulating_supply, 800_000)
    assert_close(token.projected_revenue, 7_500)
    assert_close(token.projected_dividends, 11.25)
    assert_close(token.roi, 0.15)
    assert len(token.trading_history) == 0
    assert_market_cap_consistent(token)


def test_create_token_rejects_invalid_requests():
    updates = []
    registry = _registry(on_status_update=updates.append)

    for request in [_request(initial_supply=0), _request(publishing_rights=150),
                    _request(initial_price=-1), _request(symbol="")]:
        result = registry.create_token(request)
        assert not result.success
        assert result.token_id is None
        assert result.error

    assert len(registry) == 0
    assert updates.count("Token creation failed") == 4
    assert "Token created successfully!" not in updates


def test_created_tokens_get_distinct_ids():
    registry = _registry()
    first = registry.create_token(_request())
    second = registry.create_token(_request(symbol="TST2"))
    assert first.token_id != second.token_id
    assert len(registry) == 2


# --- Trading -------------------------------------------------------------------

def test_buy_moves_price_and_records_trade():
    clock = FixedClock()
    token = make_token()
    registry = _registry(token, now=clock)

    assert registry.execute_trade("t1", 5_000, "buy")

    assert_close(token.current_price, 0.32 * (1 + 5_000 / 144_000 * 0.05))
    assert_close(token.volume_24h, 5_000)
    assert len(token.trading_history) == 1
    record = token.trading_history[-1]
    assert record.side is TradeSide.BUY
    assert record.volume == 5_000
    assert record.timestamp == clock()
    assert_close(record.price, token.current_price)
    assert_market_cap_consistent(token)


def test_sell_lowers_price_and_adds_volume():
    token = make_token()
    registry = _registry(token)

    assert registry.execute_trade("t1", 5_000, TradeSide.SELL)

    assert token.current_price < 0.32
    assert_close(token.volume_24h, 5_000)
    assert token.trading_history[-1].side is TradeSide.SELL
    assert_market_cap_consistent(token)


def test_unknown_token_trade_returns_false():
    token = make_token()
    registry = _registry(token)

    assert not registry.execute_trade("missing", 5_000, "buy")

    assert token.current_price == 0.32
    assert token.volume_24h == 0
    assert len(token.trading_history) == 0


def test_invalid_trades_are_rejected():
    token = make_token()
    registry = _registry(token)

    assert not registry.execute_trade("t1", 100, "hold")
    assert not registry.execute_trade("t1", -100, "buy")
    assert not registry.execute_trade("t1", math.nan, "buy")
    assert not registry.execute_trade("t1", math.inf, "sell")

    assert token.current_price == 0.32
    assert len(token.trading_history) == 0


def test_history_is_bounded_fifo():
    token = make_token()
    registry = _registry(token)

    for amount in range(1, 151):
        assert registry.execute_trade("t1", float(amount), "buy")

    assert len(token.trading_history) == 100
    assert token.trading_history[0].volume == 51
    assert token.trading_history[-1].volume == 150


def test_price_floor_on_large_sell():
    config = SimulationConfig()
    token = make_token(price=0.002)
    registry = _registry(token, config=config)

    assert registry.execute_trade("t1", 1_000_000_000, "sell")

    assert token.current_price == config.min_price
    assert token.current_price > 0
    assert_market_cap_consistent(token)


# --- Queries -------------------------------------------------------------------

def test_market_stats():
    registry = _registry(
        make_token("a", status="launching", roi=0.1, volume_24h=100),
        make_token("b", status="trading", roi=0.2, volume_24h=200),
        make_token("c", status="graduated", roi=0.3, volume_24h=300),
    )

    stats = registry.market_stats()

    assert stats.total_tokens == 3
    assert stats.active_tokens == 2
    assert stats.graduated_tokens == 1
    assert_close(stats.total_market_cap, 3 * 144_000)
    assert_close(stats.total_volume_24h, 600)
    assert_close(stats.average_roi, 0.2)


def test_market_stats_empty_registry():
    stats = _registry().market_stats()
    assert stats.total_tokens == 0
    assert stats.total_market_cap == 0
    assert stats.average_roi == 0


def test_trending_tokens_skip_launching():
    registry = _registry(
        make_token("a", status="launching", volume_24h=9_000),
        make_token("b", status="trading", volume_24h=100),
        make_token("c", status="ipo", volume_24h=500),
        make_token("d", status="graduated", volume_24h=300),
    )

    assert [token.id for token in registry.trending_tokens()] == ["c", "d", "b"]
    assert [token.id for token in registry.trending_tokens(limit=2)] == ["c", "d"]


def test_tokens_by_status_and_lifetime_volume():
    registry = _registry(
        make_token("a", status="trading", volumes=(3_000, 5_000)),
        make_token("b", status="launching"),
    )

    assert [token.id for token in registry.tokens_by_status("trading")] == ["a"]
    assert [token.id for token in registry.tokens_by_status(TokenStatus.LAUNCHING)] == ["b"]
    assert_close(registry.lifetime_volume("a"), 8_000)
    assert registry.lifetime_volume("missing") == 0
    assert "a" in registry


def test_reset_daily_volume():
    registry = _registry(make_token("a", volume_24h=1_000), make_token("b", volume_24h=50))
    registry.reset_daily_volume()
    assert all(token.volume_24h == 0 for token in registry.all_tokens())


def test_unknown_status_query_returns_empty():
    registry = _registry(make_token("a", status="trading"))
    assert registry.tokens_by_status("delisted") == []


def test_non_numeric_trade_amount_is_rejected():
    token = make_token()
    registry = _registry(token)

    assert not registry.execute_trade("t1", "100", "buy")
    assert not registry.execute_trade("t1", None, "sell")

    assert token.current_price == 0.32
    assert len(token.trading_history) == 0
