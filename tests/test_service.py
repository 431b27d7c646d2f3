"""Marketplace facade and example catalog tests."""

from musika_sim.catalog import example_tokens, touring_tokens
from musika_sim.cli import format_market_cap, format_price, format_volume
from musika_sim.config import SimulationConfig
from musika_sim.service import MarketplaceService
from musika_sim.state import CreateTokenRequest, TokenStatus
from tests.utils import FixedClock, ScriptedRandom, assert_close, assert_market_cap_consistent, expect_raises


def _service(**kwargs) -> MarketplaceService:
    kwargs.setdefault("rng", ScriptedRandom(0.5))
    kwargs.setdefault("now", FixedClock())
    return MarketplaceService(**kwargs)


def test_example_catalog():
    tokens = example_tokens(FixedClock()())
    assert [token.symbol for token in tokens] == ["DREAM", "WAVES", "RHYTHM"]
    assert_close(tokens[0].market_cap, 144_000)
    assert_close(tokens[0].lifetime_volume(), 8_000)
    for token in tokens:
        assert_market_cap_consistent(token)


def test_touring_catalog():
    tokens = touring_tokens(FixedClock()())
    assert [token.current_price for token in tokens] == [0.42, 0.28, 0.18]
    assert all(token.status is TokenStatus.TRADING for token in tokens)
    for token in tokens:
        assert_market_cap_consistent(token)


def test_service_loads_examples_without_starting():
    service = _service()
    assert len(service.get_all_tokens()) == 3
    assert service.get_token("1").symbol == "DREAM"
    assert not service.clock.running


def test_service_without_examples():
    assert _service(load_examples=False).get_all_tokens() == []


def test_service_market_stats_and_trending():
    service = _service()
    stats = service.get_market_stats()

    assert stats.total_tokens == 3
    assert stats.active_tokens == 2
    assert stats.graduated_tokens == 0
    assert_close(stats.average_roi, (0.28 + 0.20 + 0.35) / 3)
    assert [token.symbol for token in service.get_trending_tokens()] == ["DREAM", "WAVES"]
    assert [token.symbol for token in service.get_tokens_by_status("launching")] == ["RHYTHM"]


def test_service_quotes():
    service = _service()
    token = service.get_token("1")

    assert_close(service.calculate_price_impact(token, 5_000, True), 5_000 / 144_000 * 0.05)
    tokens = service.calculate_tokens_for_reserve(token, 1_000)
    assert_close(service.calculate_reserve_for_tokens(token, tokens), 1_000, rel=1e-6)
    assert service.calculate_roi_projection(token, 1_000).risk_level == "medium"


def test_service_graduation_after_trading():
    service = _service()

    assert_close(service.get_lifetime_volume("1"), 8_000)
    assert not service.simulate_graduation("1")

    assert service.execute_trade("1", 15_000, "buy")
    assert service.simulate_graduation("1")
    assert service.get_token("1").status is TokenStatus.GRADUATED
    assert service.simulate_exchange_demand("1")


def test_service_create_and_trade():
    updates = []
    service = _service(load_examples=False, on_status_update=updates.append)
    result = service.create_token(CreateTokenRequest(
        name="New Song", symbol="NEW", artist="Newcomer",
        publishing_rights=60, initial_price=0.05, initial_supply=2_000_000,
    ))

    assert result.success
    assert updates[-1] == "Token created successfully!"
    assert service.execute_trade(result.token_id, 100, "buy")
    assert len(service.get_token(result.token_id).trading_history) == 1


def test_update_config_replaces_callback():
    first, second = [], []
    service = _service(load_examples=False, on_status_update=first.append)
    service.update_config(on_status_update=second.append)
    service.create_token(CreateTokenRequest(
        name="Song", symbol="S", artist="A", publishing_rights=10, initial_price=1, initial_supply=1_000,
    ))
    assert first == []
    assert second[0] == "Creating token..."


def test_realistic_market_stats_reset():
    service = _service()
    service.instant_graduation("1")
    service.update_realistic_market_stats()

    token = service.get_token("1")
    assert token.status is TokenStatus.TRADING
    assert token.current_price == 0.42
    assert service.simulate_tour_announcement("2")


def test_service_start_stop():
    service = _service(config=SimulationConfig(tick_interval_seconds=60))
    service.start_simulation()
    assert service.clock.running
    service.stop_simulation()
    service.stop_simulation()
    assert not service.clock.running


def test_service_rejects_invalid_config():
    expect_raises(AssertionError, MarketplaceService, SimulationConfig(price_volatility=2.0))


def test_display_formatting():
    assert format_price(0.0042) == "0.004200"
    assert format_price(0.32) == "0.3200"
    assert format_price(6.4) == "6.40"
    assert format_market_cap(144_000) == "144.00K"
    assert format_market_cap(2_500_000) == "2.50M"
    assert format_market_cap(950) == "950.00"
    assert format_volume(12_500) == "12.50K"


def test_unknown_status_through_service():
    assert _service().get_tokens_by_status("delisted") == []


def test_catalog_numbers_are_floats():
    for token in example_tokens(FixedClock()()) + touring_tokens(FixedClock()()):
        for value in (token.volume_24h, token.circulating_supply, token.total_supply,
                      token.projected_revenue, token.publishing_rights):
            assert isinstance(value, float)
