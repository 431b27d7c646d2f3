"""Command-line interface for marketplace simulations and quotes."""

import argparse
import logging
import math
from pathlib import Path
from datetime import datetime

from .config import MARKET_SCENARIOS, SimulationConfig
from .core import MarketplaceSimulation
from .metrics import calculate_key_metrics, export_metrics_to_file, snapshots_to_dataframe
from .plotting import create_summary_plots, generate_summary_report
from .service import MarketplaceService


def format_price(price: float) -> str:
    if price < 0.01:
        return f"{price:.6f}"
    if price < 1:
        return f"{price:.4f}"
    return f"{price:.2f}"


def format_market_cap(market_cap: float) -> str:
    if market_cap >= 1_000_000:
        return f"{market_cap / 1_000_000:.2f}M"
    if market_cap >= 1_000:
        return f"{market_cap / 1_000:.2f}K"
    return f"{market_cap:.2f}"


# Volumes share the market-cap K/M formatting
format_volume = format_market_cap


def _build_config(args) -> SimulationConfig:
    if getattr(args, "config", None):
        config = SimulationConfig.from_calibration_file(args.config)
    else:
        config = SimulationConfig.create_market_scenario(getattr(args, "scenario", "default"))
    if getattr(args, "seed", None) is not None:
        config.random_seed = args.seed
    return config


def run_single(args) -> None:
    """Run one batch simulation and write snapshots, metrics, plots and report."""
    config = _build_config(args)
    config.step_hours = args.step_hours
    config.enable_participant_behavior = not args.no_participants

    print(f"Running marketplace simulation: {args.scenario} scenario, {args.steps} steps")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    simulation = MarketplaceSimulation(config)
    results = simulation.run(args.steps)

    if not args.no_snapshots:
        df = snapshots_to_dataframe(results.snapshots)
        if not df.is_empty():
            parquet_file = output_dir / f"market_snapshots_{args.scenario}_{timestamp}.parquet"
            df.write_parquet(parquet_file)
            print(f"Snapshots saved: {parquet_file}")

    metrics_file = export_metrics_to_file(results, str(output_dir / f"market_metrics_{args.scenario}_{timestamp}.json"))
    print(f"Metrics saved: {metrics_file}")

    if args.plots:
        create_summary_plots(results, str(output_dir / f"market_summary_{args.scenario}_{timestamp}.png"))
        generate_summary_report(results, str(output_dir / f"market_report_{args.scenario}_{timestamp}.md"))

    metrics = calculate_key_metrics(results)
    print("\nFinal Results:")
    print(f"   • Market Cap: {format_market_cap(metrics.get('final_market_cap', 0))} "
          f"({metrics.get('market_cap_growth', 0):+.2%})")
    print(f"   • Traded Volume: {format_volume(metrics.get('total_traded_volume', 0))}")
    print(f"   • Active / Graduated: {metrics.get('final_active_tokens', 0)} / "
          f"{metrics.get('final_graduated_tokens', 0)}")
    print(f"   • Events: {metrics.get('tour_events', 0)} tours, {metrics.get('graduation_events', 0)} "
          f"graduations, {metrics.get('demand_surge_events', 0)} demand surges")


def list_tokens(args) -> None:
    service = MarketplaceService(_build_config(args))
    if args.touring:
        service.update_realistic_market_stats()

    tokens = service.get_tokens_by_status(args.status) if args.status else service.get_all_tokens()
    print(f"{'ID':<4} {'Symbol':<8} {'Status':<10} {'Price':>10} {'Market Cap':>12} {'Vol 24h':>10} {'ROI':>6}")
    for token in tokens:
        print(f"{token.id:<4} {token.symbol:<8} {token.status.value:<10} {format_price(token.current_price):>10} "
              f"{format_market_cap(token.market_cap):>12} {format_volume(token.volume_24h):>10} {token.roi:>6.2f}")

    stats = service.get_market_stats()
    print(f"\n{stats.total_tokens} tokens, total cap {format_market_cap(stats.total_market_cap)}, "
          f"{stats.active_tokens} active, {stats.graduated_tokens} graduated, average ROI {stats.average_roi:.3f}")


def project_investment(args) -> None:
    service = MarketplaceService(_build_config(args))
    token = service.get_token(args.token_id)
    if token is None:
        print(f"Unknown token: {args.token_id}")
        return

    projection = service.calculate_roi_projection(token, args.amount)
    impact = service.calculate_price_impact(token, args.amount, True)

    print(f"{token.name} ({token.symbol}) - investing {args.amount:,.2f}")
    print(f"   • Tokens received: {projection.tokens_to_buy:,.2f}")
    print(f"   • Price impact: {impact:.4%}")
    print(f"   • Current price: {format_price(projection.current_price)}")
    print(f"   • Projected price ({service.config.projection_days}d): {format_price(projection.projected_price)}")
    print(f"   • Potential return: {projection.potential_return:,.2f}")
    if math.isfinite(projection.break_even_price):
        print(f"   • Break-even price: {format_price(projection.break_even_price)}")
        print(f"   • Days to break even: {projection.time_to_break_even:.1f}")
    else:
        print("   • Break-even: not reachable")
    print(f"   • Risk level: {projection.risk_level}")


def run_event(args) -> None:
    service = MarketplaceService(_build_config(args))
    actions = {
        "tour": service.simulate_tour_announcement,
        "graduate": service.simulate_graduation,
        "instant-graduate": service.instant_graduation,
        "demand": service.simulate_exchange_demand,
    }

    token = service.get_token(args.token_id)
    before = token.current_price if token else None
    ok = actions[args.event](args.token_id)
    if not ok:
        print(f"Event '{args.event}' not applied to token {args.token_id} "
              f"(lifetime volume {service.get_lifetime_volume(args.token_id):,.2f})")
        return
    token = service.get_token(args.token_id)
    print(f"Event '{args.event}' applied to {token.symbol}: price {format_price(before)} -> "
          f"{format_price(token.current_price)}, status {token.status.value}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Music rights marketplace simulation CLI")
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_common(sub):
        sub.add_argument('--scenario', default='default', choices=list(MARKET_SCENARIOS.keys()),
                         help='Market scenario preset')
        sub.add_argument('--config', default=None, help='JSON calibration file (overrides --scenario)')
        sub.add_argument('--seed', type=int, default=None, help='Random seed')

    single_parser = subparsers.add_parser('single', help='Run a batch simulation')
    add_common(single_parser)
    single_parser.add_argument('--steps', type=int, default=24 * 30, help='Number of model steps')
    single_parser.add_argument('--step-hours', type=float, default=1.0, help='Simulated hours per step')
    single_parser.add_argument('--output-dir', default='experiments/single', help='Output directory')
    single_parser.add_argument('--no-participants', action='store_true', help='Disable synthetic traders')
    single_parser.add_argument('--no-snapshots', action='store_true', help='Skip snapshot parquet export')
    single_parser.add_argument('--plots', action='store_true', help='Write summary plots and report')

    tokens_parser = subparsers.add_parser('tokens', help='List example tokens')
    add_common(tokens_parser)
    tokens_parser.add_argument('--status', choices=['launching', 'trading', 'ipo', 'graduated'],
                               help='Filter by status')
    tokens_parser.add_argument('--touring', action='store_true', help='Use touring-season data')

    project_parser = subparsers.add_parser('project', help='ROI projection for an investment')
    add_common(project_parser)
    project_parser.add_argument('token_id', help='Token id')
    project_parser.add_argument('amount', type=float, help='Investment in reserve currency')

    events_parser = subparsers.add_parser('events', help='Apply a market event to an example token')
    add_common(events_parser)
    events_parser.add_argument('event', choices=['tour', 'graduate', 'instant-graduate', 'demand'])
    events_parser.add_argument('token_id', help='Token id')

    subparsers.add_parser('scenarios', help='List available scenarios')

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == 'single':
        run_single(args)
    elif args.command == 'tokens':
        list_tokens(args)
    elif args.command == 'project':
        project_investment(args)
    elif args.command == 'events':
        run_event(args)
    elif args.command == 'scenarios':
        print("Available market scenarios:\n")
        for name, overrides in MARKET_SCENARIOS.items():
            print(name)
            if not overrides:
                print("   • (defaults)")
            for key, value in overrides.items():
                print(f"   • {key}: {value}")
            print()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
