"""Polars-based metrics over marketplace snapshots.

Snapshots are long-format (one row per token per step); per-token and
per-step views are built with declarative group_by expressions.
"""

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import polars as pl

from .state import MarketSnapshot, SimulationEvent, SimulationResults


SNAPSHOT_SCHEMA = {
    "step": pl.Int64,
    "timestamp": pl.Datetime,
    "token_id": pl.Utf8,
    "symbol": pl.Utf8,
    "status": pl.Utf8,
    "price": pl.Float64,
    "market_cap": pl.Float64,
    "volume_24h": pl.Float64,
    "price_change_24h": pl.Float64,
    "roi": pl.Float64,
    "trades": pl.Int64,
    "traded_volume": pl.Float64,
}


def snapshots_to_dataframe(snapshots: List[MarketSnapshot]) -> pl.DataFrame:
    """Convert MarketSnapshot objects to a polars DataFrame with derived columns."""
    if not snapshots:
        return pl.DataFrame()

    data = {
        "step": [s.step for s in snapshots],
        "timestamp": [s.timestamp for s in snapshots],
        "token_id": [s.token_id for s in snapshots],
        "symbol": [s.symbol for s in snapshots],
        "status": [s.status for s in snapshots],
        "price": [s.price for s in snapshots],
        "market_cap": [s.market_cap for s in snapshots],
        "volume_24h": [s.volume_24h for s in snapshots],
        "price_change_24h": [s.price_change_24h for s in snapshots],
        "roi": [s.roi for s in snapshots],
        "trades": [s.trades for s in snapshots],
        "traded_volume": [s.traded_volume for s in snapshots],
    }

    df = pl.DataFrame(data, schema=SNAPSHOT_SCHEMA).sort(["token_id", "step"])

    return df.with_columns([
        # Step-over-step return per token
        pl.col("price").pct_change().over("token_id").alias("price_return"),
        # Running peak and drawdown per token
        pl.col("market_cap").cum_max().over("token_id").alias("peak_market_cap"),
        (pl.col("price") / pl.col("price").cum_max().over("token_id") - 1.0).alias("drawdown"),
    ])


def events_to_dataframe(events: List[SimulationEvent]) -> pl.DataFrame:
    if not events:
        return pl.DataFrame()
    return pl.DataFrame({
        "step": [e.step for e in events],
        "timestamp": [e.timestamp for e in events],
        "token_id": [e.token_id for e in events],
        "kind": [e.kind for e in events],
        "detail": [e.detail for e in events],
    })


def calculate_token_summary(snapshots: List[MarketSnapshot]) -> List[Dict[str, Any]]:
    """Per-token first/last price, total return, peak market cap and final status."""
    df = snapshots_to_dataframe(snapshots)
    if df.is_empty():
        return []

    summary = (df
               .group_by("token_id", maintain_order=True)
               .agg([
                   pl.col("symbol").first().alias("symbol"),
                   pl.col("price").first().alias("first_price"),
                   pl.col("price").last().alias("last_price"),
                   pl.col("market_cap").max().alias("peak_market_cap"),
                   pl.col("market_cap").last().alias("final_market_cap"),
                   pl.col("traded_volume").sum().alias("traded_volume"),
                   pl.col("trades").sum().alias("trades"),
                   pl.col("drawdown").min().alias("max_drawdown"),
                   pl.col("price_return").std().alias("return_volatility"),
                   pl.col("status").last().alias("final_status"),
               ])
               .with_columns((pl.col("last_price") / pl.col("first_price") - 1.0).alias("total_return"))
               .sort("final_market_cap", descending=True))

    return summary.to_dicts()


def calculate_market_timeline(snapshots: List[MarketSnapshot]) -> pl.DataFrame:
    """Market-wide totals and status counts per step."""
    df = snapshots_to_dataframe(snapshots)
    if df.is_empty():
        return df

    return (df
            .group_by("step", maintain_order=True)
            .agg([
                pl.col("timestamp").first().alias("timestamp"),
                pl.col("market_cap").sum().alias("total_market_cap"),
                pl.col("volume_24h").sum().alias("total_volume_24h"),
                pl.col("traded_volume").sum().alias("traded_volume"),
                (pl.col("status") == "launching").sum().alias("launching"),
                (pl.col("status") == "trading").sum().alias("trading"),
                (pl.col("status") == "ipo").sum().alias("ipo"),
                (pl.col("status") == "graduated").sum().alias("graduated"),
            ])
            .sort("step"))


def calculate_key_metrics(results: SimulationResults) -> Dict[str, Any]:
    """Headline metrics for a completed run."""
    if not results.snapshots:
        return {}

    timeline = calculate_market_timeline(results.snapshots)
    events = events_to_dataframe(results.events)

    initial_cap = timeline.select("total_market_cap").item(0, 0)
    final_cap = timeline.select("total_market_cap").item(-1, 0)

    metrics: Dict[str, Any] = {
        "steps": timeline.height,
        "simulated_hours": timeline.height * results.config.step_hours,
        "initial_market_cap": initial_cap,
        "final_market_cap": final_cap,
        "market_cap_growth": (final_cap / initial_cap - 1.0) if initial_cap > 0 else 0.0,
        "total_traded_volume": timeline.select(pl.col("traded_volume").sum()).item(0, 0),
        "peak_market_cap": timeline.select(pl.col("total_market_cap").max()).item(0, 0),
        "final_tokens": results.final_stats.total_tokens,
        "final_active_tokens": results.final_stats.active_tokens,
        "final_graduated_tokens": results.final_stats.graduated_tokens,
        "final_average_roi": results.final_stats.average_roi,
    }

    event_counts = {"tour": 0, "graduation": 0, "demand_surge": 0, "status_change": 0}
    if not events.is_empty():
        for row in events.group_by("kind").agg(pl.len().alias("count")).to_dicts():
            event_counts[row["kind"]] = row["count"]
    metrics.update({f"{kind}_events": count for kind, count in event_counts.items()})

    metrics["participant_volumes"] = dict(results.participant_volumes)
    return metrics


def export_metrics_to_file(results: SimulationResults, file_path: Optional[str] = None) -> str:
    """Export key metrics and per-token summary to JSON; returns the path written."""
    metrics_data = {
        "summary": calculate_key_metrics(results),
        "tokens": calculate_token_summary(results.snapshots),
    }

    if not file_path:
        output_dir = "experiments/outputs/data"
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_path = f"{output_dir}/market_metrics_{timestamp}.json"

    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, "w") as f:
        json.dump(metrics_data, f, indent=2, default=str)
    return file_path
