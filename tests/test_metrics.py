"""Metrics, export and reporting tests without pytest.

Runs short batch simulations and checks the polars views, the JSON export
and the generated report and plots."""

import json
import os
import tempfile
from datetime import datetime

import matplotlib
import polars as pl

matplotlib.use("Agg")

from musika_sim.config import SimulationConfig
from musika_sim.core import MarketplaceSimulation
from musika_sim.metrics import (
    calculate_key_metrics,
    calculate_market_timeline,
    calculate_token_summary,
    events_to_dataframe,
    export_metrics_to_file,
    snapshots_to_dataframe,
)
from musika_sim.plotting import create_summary_plots, generate_summary_report
from musika_sim.state import MarketSnapshot, MarketStats, SimulationResults
from tests.utils import assert_close, file_exists


def _results(steps: int = 12, **overrides):
    params = dict(random_seed=21)
    params.update(overrides)
    return MarketplaceSimulation(SimulationConfig(**params)).run(steps)


def test_snapshot_dataframe():
    results = _results()
    df = snapshots_to_dataframe(results.snapshots)

    assert df.height == len(results.snapshots)
    for column in ["price", "market_cap", "price_return", "peak_market_cap", "drawdown"]:
        assert column in df.columns
    assert df["drawdown"].max() <= 1e-12
    assert snapshots_to_dataframe([]).is_empty()


def test_token_summary():
    results = _results()
    summary = calculate_token_summary(results.snapshots)

    assert {row["symbol"] for row in summary} == {"DREAM", "WAVES", "RHYTHM"}
    for row in summary:
        assert_close(row["total_return"], row["last_price"] / row["first_price"] - 1.0)
        assert row["peak_market_cap"] >= row["final_market_cap"]
    caps = [row["final_market_cap"] for row in summary]
    assert caps == sorted(caps, reverse=True)


def test_market_timeline():
    results = _results(steps=10)
    timeline = calculate_market_timeline(results.snapshots)

    assert timeline.height == 10
    assert timeline["step"].to_list() == list(range(1, 11))
    counts = timeline["launching"] + timeline["trading"] + timeline["ipo"] + timeline["graduated"]
    assert counts.to_list() == [3] * 10


def test_key_metrics():
    results = _results(steps=8, tour_probability=1.0, enable_participant_behavior=False)
    metrics = calculate_key_metrics(results)

    assert metrics["steps"] == 8
    assert_close(metrics["simulated_hours"], 8.0)
    assert metrics["tour_events"] == 24
    assert metrics["graduation_events"] == 0
    assert metrics["total_traded_volume"] == 0
    assert metrics["final_tokens"] == 3
    assert metrics["market_cap_growth"] > 0
    assert events_to_dataframe(results.events).height == len(results.events)


def test_empty_results():
    empty = SimulationResults(snapshots=[], events=[], final_stats=MarketStats(), config=SimulationConfig())
    assert calculate_key_metrics(empty) == {}
    assert calculate_token_summary([]) == []
    assert create_summary_plots(empty) is None


def test_export_metrics_to_file():
    results = _results(steps=6)
    with tempfile.TemporaryDirectory() as tmp:
        path = export_metrics_to_file(results, os.path.join(tmp, "nested", "metrics.json"))
        assert file_exists(path)
        with open(path) as f:
            data = json.load(f)

    assert data["summary"]["steps"] == 6
    assert len(data["tokens"]) == 3


def test_report_and_plots():
    results = _results(steps=6)
    with tempfile.TemporaryDirectory() as tmp:
        report = generate_summary_report(results, os.path.join(tmp, "report.md"))
        assert file_exists(os.path.join(tmp, "report.md"))
        plot_path = create_summary_plots(results, os.path.join(tmp, "summary.png"))
        assert file_exists(plot_path)

    assert "# Marketplace Simulation Summary Report" in report
    assert "DREAM" in report


def test_snapshot_columns_are_float_for_integer_values():
    """Whole-number prices and volumes ahead of fractional ones keep a Float64 column."""
    snapshots = [
        MarketSnapshot(step=step, timestamp=datetime(2024, 1, 1, step), token_id="1", symbol="DREAM",
                       status="trading", price=price, market_cap=volume * 10, volume_24h=volume,
                       price_change_24h=0, roi=1, trades=0, traded_volume=volume)
        for step, price, volume in [(1, 1, 12_500), (2, 1.05, 15_692.048618)]
    ]

    df = snapshots_to_dataframe(snapshots)

    for column in ["price", "market_cap", "volume_24h", "price_change_24h", "roi", "traded_volume"]:
        assert df.schema[column] == pl.Float64
    assert_close(df["volume_24h"].to_list()[1], 15_692.048618)
    assert calculate_market_timeline(snapshots).height == 2
