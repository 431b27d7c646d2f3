"""Visualization and reporting for marketplace simulation results."""

import os
from datetime import datetime
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .metrics import calculate_key_metrics, calculate_token_summary
from .state import SimulationResults


# Status palette shared with the app's status badges
STATUS_COLORS = {
    "launching": "#FF6B35",
    "trading": "#4CAF50",
    "ipo": "#2196F3",
    "graduated": "#9C27B0",
}


def _default_path(kind: str, prefix: str, extension: str) -> str:
    output_dir = f"experiments/outputs/{kind}"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{output_dir}/{prefix}_{timestamp}.{extension}"


def _ensure_parent(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def results_to_pandas(results: SimulationResults) -> pd.DataFrame:
    """Flatten snapshots for seaborn plotting."""
    return pd.DataFrame([
        {
            "step": s.step,
            "hours": s.step * results.config.step_hours,
            "symbol": s.symbol,
            "status": s.status,
            "price": s.price,
            "market_cap": s.market_cap,
            "volume_24h": s.volume_24h,
            "traded_volume": s.traded_volume,
        }
        for s in results.snapshots
    ])


def create_summary_plots(results: SimulationResults, save_path: Optional[str] = None) -> Optional[str]:
    """
    Create a 2x2 summary figure: price per token, market cap per token,
    rolling 24h volume and lifecycle status counts.

    Returns the saved path, or None when there is nothing to plot.
    """
    if not results.snapshots:
        print("No data to plot")
        return None

    sns.set_style("whitegrid")
    sns.set_palette("husl")

    df = results_to_pandas(results)

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle("Music Rights Marketplace Simulation", fontsize=16, y=0.98)

    sns.lineplot(data=df, x="hours", y="price", hue="symbol", linewidth=2, ax=axes[0, 0])
    axes[0, 0].set_xlabel("Hours")
    axes[0, 0].set_ylabel("Price (reserve currency)")
    axes[0, 0].set_title("Price Evolution")
    axes[0, 0].set_yscale("log")

    sns.lineplot(data=df, x="hours", y="market_cap", hue="symbol", linewidth=2, ax=axes[0, 1])
    axes[0, 1].set_xlabel("Hours")
    axes[0, 1].set_ylabel("Market Cap")
    axes[0, 1].set_title("Market Cap")
    axes[0, 1].set_yscale("log")

    sns.lineplot(data=df, x="hours", y="volume_24h", hue="symbol", alpha=0.8, ax=axes[1, 0])
    axes[1, 0].set_xlabel("Hours")
    axes[1, 0].set_ylabel("Volume (24h window)")
    axes[1, 0].set_title("Rolling Volume")

    status_counts = (df.groupby(["hours", "status"]).size().unstack(fill_value=0)
                     .reindex(columns=list(STATUS_COLORS), fill_value=0))
    axes[1, 1].stackplot(
        status_counts.index,
        [status_counts[status] for status in STATUS_COLORS],
        labels=list(STATUS_COLORS),
        colors=list(STATUS_COLORS.values()),
        alpha=0.8,
    )
    axes[1, 1].set_xlabel("Hours")
    axes[1, 1].set_ylabel("Tokens")
    axes[1, 1].set_title("Lifecycle Status")
    axes[1, 1].legend(loc="upper left")

    plt.tight_layout()

    path = save_path or _default_path("plots", "market_summary", "png")
    _ensure_parent(path)
    plt.savefig(path, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"Plots saved to {path}")
    return path


def generate_summary_report(results: SimulationResults, file_path: Optional[str] = None) -> str:
    """Generate a markdown summary report of simulation results."""
    metrics = calculate_key_metrics(results)
    tokens = calculate_token_summary(results.snapshots)

    token_rows = "\n".join(
        f"| {t['symbol']} | {t['first_price']:.4f} | {t['last_price']:.4f} | "
        f"{t['total_return']:.2%} | {t['final_market_cap']:,.0f} | {t['final_status']} |"
        for t in tokens
    )

    report = f"""# Marketplace Simulation Summary Report

## Overview
- **Steps**: {metrics.get('steps', 0)} ({metrics.get('simulated_hours', 0):.1f} simulated hours)
- **Initial Market Cap**: {metrics.get('initial_market_cap', 0):,.2f}
- **Final Market Cap**: {metrics.get('final_market_cap', 0):,.2f}
- **Market Cap Growth**: {metrics.get('market_cap_growth', 0):.2%}
- **Traded Volume**: {metrics.get('total_traded_volume', 0):,.2f}

## Lifecycle
- **Active Tokens**: {metrics.get('final_active_tokens', 0)} of {metrics.get('final_tokens', 0)}
- **Graduated Tokens**: {metrics.get('final_graduated_tokens', 0)}
- **Average ROI**: {metrics.get('final_average_roi', 0):.4f}

## Events
- **Tour Announcements**: {metrics.get('tour_events', 0)}
- **Exchange Graduations**: {metrics.get('graduation_events', 0)}
- **Demand Surges**: {metrics.get('demand_surge_events', 0)}
- **Status Transitions**: {metrics.get('status_change_events', 0)}

## Tokens
| Symbol | First Price | Last Price | Return | Final Market Cap | Status |
|---|---|---|---|---|---|
{token_rows}
"""

    path = file_path or _default_path("reports", "market_report", "md")
    _ensure_parent(path)
    with open(path, "w") as f:
        f.write(report)
    print(f"Report saved to {path}")
    return report
