"""
Command-line interface for the portfolio ledger engine.

Provides commands for:
- positions: Replay the ledger into current positions and cash
- history: Synthesize the value history with the buy-and-hold benchmark
- analytics: FIFO round trips and realized P&L statistics
- value: Mark positions to live prices
- report: Run the full dashboard computation
"""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from folio_ledger.analytics import (
    compare_to_benchmark,
    match_lots,
    realized_pnl_by_asset,
    summarize_round_trips,
)
from folio_ledger.config import ConfigurationError, apply_config_sheet, load_ledger_config
from folio_ledger.dashboard import build_dashboard
from folio_ledger.data import (
    DataLoadError,
    load_config_sheet,
    load_history,
    load_live_prices,
    load_reference_prices,
    load_targets,
    load_trades,
    save_history,
    save_positions,
    save_round_trips,
)
from folio_ledger.dates import DateNormalizer
from folio_ledger.logging import DecimalEncoder, get_logger
from folio_ledger.models import LedgerConfig, Trade
from folio_ledger.portfolio import (
    build_positions,
    make_price_lookup,
    replay_ledger,
    resolve_history,
    sort_trades,
    synthesize_history,
    value_positions,
)
from folio_ledger.portfolio.valuation import get_gainers_and_losers


def _load_config(config: str, config_sheet: Optional[str]) -> LedgerConfig:
    try:
        ledger_config = load_ledger_config(config)
        if config_sheet:
            ledger_config = apply_config_sheet(ledger_config, load_config_sheet(config_sheet))
    except (ConfigurationError, DataLoadError) as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)
    return ledger_config


def _load_trades(trades: str) -> list[Trade]:
    try:
        return load_trades(trades)
    except DataLoadError as e:
        click.echo(f"Error loading trades: {e}", err=True)
        sys.exit(1)


def _output_dir(output_dir: Optional[str], config: LedgerConfig) -> Path:
    out_dir = Path(output_dir or config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


config_option = click.option(
    "--config", "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to ledger configuration YAML file",
)
config_sheet_option = click.option(
    "--config-sheet",
    type=click.Path(exists=True),
    default=None,
    help="Optional key/value Config tab export (CSV)",
)
trades_option = click.option(
    "--trades", "-t",
    required=True,
    type=click.Path(exists=True),
    help="Path to trades CSV file",
)
output_dir_option = click.option(
    "--output-dir", "-o",
    type=click.Path(),
    default=None,
    help="Output directory. Defaults to config output_dir.",
)


@click.group()
@click.version_option(version="0.1.0", prog_name="folio-ledger")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """
    Portfolio ledger engine.

    Replays an append-only BUY/SELL ledger into positions, history,
    realized trade analytics and a buy-and-hold benchmark comparison.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


@main.command()
@config_option
@config_sheet_option
@trades_option
@output_dir_option
def positions(config: str, config_sheet: Optional[str], trades: str, output_dir: Optional[str]):
    """
    Replay the ledger into current positions.

    Sorts trades by date and replays them to compute holdings, cost basis
    and residual cash.
    """
    ledger_config = _load_config(config, config_sheet)
    out_dir = _output_dir(output_dir, ledger_config)
    logger = get_logger(out_dir)
    logger.log_config_loaded(ledger_config, config)

    trade_list = _load_trades(trades)
    normalizer = DateNormalizer(reference_year=ledger_config.reference_year, now=datetime.now())

    click.echo(f"Replaying {len(trade_list)} trades...")
    state = replay_ledger(trade_list, ledger_config, normalizer)
    current = build_positions(state, ledger_config)
    logger.log_ledger_replayed(ledger_config.portfolio_id, len(trade_list), current, state.cash)

    positions_path = out_dir / f"positions_{ledger_config.portfolio_id}.csv"
    save_positions(current, positions_path)
    click.echo(f"  Positions saved: {positions_path}")

    click.echo()
    click.echo(f"Positions ({ledger_config.client_name}):")
    for pos in current:
        click.echo(f"  {pos.asset:<6} {pos.amount:>16,.6f} @ ${pos.cost_basis:,.2f}")
    click.echo(f"  Cash:  ${state.cash:,.2f}")


@main.command()
@config_option
@config_sheet_option
@trades_option
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Path to live prices CSV file (asset, price)",
)
@click.option(
    "--reference-prices", "-r",
    type=click.Path(exists=True),
    default=None,
    help="Path to reference asset price history CSV file (date, price)",
)
@click.option(
    "--fallback-history",
    type=click.Path(exists=True),
    default=None,
    help="History CSV used when there are no trades",
)
@output_dir_option
def history(
    config: str,
    config_sheet: Optional[str],
    trades: str,
    prices: Optional[str],
    reference_prices: Optional[str],
    fallback_history: Optional[str],
    output_dir: Optional[str],
):
    """
    Synthesize the portfolio value history.

    Produces one point per trade date, annotated with the value of buying
    and holding the reference asset with the same capital.
    """
    ledger_config = _load_config(config, config_sheet)
    out_dir = _output_dir(output_dir, ledger_config)
    logger = get_logger(out_dir)

    trade_list = _load_trades(trades)
    normalizer = DateNormalizer(reference_year=ledger_config.reference_year, now=datetime.now())

    try:
        live_prices = load_live_prices(prices) if prices else {}
        reference = load_reference_prices(reference_prices, normalizer) if reference_prices else {}
        fallback = load_history(fallback_history, normalizer) if fallback_history else None
    except DataLoadError as e:
        click.echo(f"Error loading prices: {e}", err=True)
        sys.exit(1)

    ordered = sort_trades(trade_list, normalizer)
    points = resolve_history(
        synthesize_history(ordered, ledger_config, normalizer, live_prices),
        fallback,
    )
    logger.log_history_synthesized(ledger_config.portfolio_id, points)

    current = build_positions(replay_ledger(ordered, ledger_config, normalizer), ledger_config)
    valuation = value_positions(
        current, make_price_lookup(live_prices, ledger_config), ledger_config.starting_capital
    )
    comparison = compare_to_benchmark(
        history=points,
        total_invested=ledger_config.starting_capital,
        price_history=reference,
        live_price=live_prices.get(ledger_config.reference_asset),
        current_value=valuation.total_value,
        config=ledger_config,
    )
    logger.log_benchmark_compared(ledger_config.portfolio_id, comparison)

    history_path = out_dir / f"history_{ledger_config.portfolio_id}.csv"
    save_history(comparison.series, history_path)
    click.echo(f"  History saved: {history_path}")

    click.echo()
    click.echo(f"History ({len(comparison.series)} points):")
    for point in comparison.series:
        benchmark = f"${point.benchmark_value:,.0f}" if point.benchmark_value is not None else "-"
        click.echo(f"  {point.date:<12} ${point.value:>14,.2f}   {ledger_config.reference_asset} hold: {benchmark}")
    click.echo(f"  Beating {ledger_config.reference_asset} by: ${comparison.beating_benchmark_by:,.2f}")


@main.command()
@config_option
@config_sheet_option
@trades_option
@output_dir_option
def analytics(config: str, config_sheet: Optional[str], trades: str, output_dir: Optional[str]):
    """
    Analyze realized trades.

    Matches sells against buys FIFO per asset and reports win rate, best
    and worst trades, average holding period and realized profit.
    """
    ledger_config = _load_config(config, config_sheet)
    out_dir = _output_dir(output_dir, ledger_config)
    logger = get_logger(out_dir)

    trade_list = _load_trades(trades)
    normalizer = DateNormalizer(reference_year=ledger_config.reference_year, now=datetime.now())

    matches = match_lots(sort_trades(trade_list, normalizer), normalizer)
    summary = summarize_round_trips(matches.round_trips, len(trade_list))
    logger.log_trades_analyzed(ledger_config.portfolio_id, matches, summary)

    round_trips_path = out_dir / f"round_trips_{ledger_config.portfolio_id}.csv"
    save_round_trips(matches.round_trips, round_trips_path)
    click.echo(f"  Round trips saved: {round_trips_path}")

    click.echo()
    if summary is None:
        click.echo("No trades yet.")
        return

    click.echo("Trade Analytics:")
    click.echo(f"  Trades:        {summary.total_trades}")
    click.echo(f"  Round trips:   {summary.round_trip_count}")
    if not summary.has_round_trips:
        click.echo("  No completed round trips.")
        return

    click.echo(f"  Win rate:      {summary.win_rate:.1f}% ({summary.winners}W / {summary.losers}L)")
    click.echo(f"  Avg hold:      {summary.avg_hold_days:.1f} days")
    click.echo(f"  Realized P&L:  ${summary.total_realized_profit:,.2f}")
    click.echo(
        f"  Best:          {summary.best_trade.asset} ${summary.best_trade.profit:,.2f} "
        f"({summary.best_trade.buy_date} -> {summary.best_trade.sell_date})"
    )
    click.echo(
        f"  Worst:         {summary.worst_trade.asset} ${summary.worst_trade.profit:,.2f} "
        f"({summary.worst_trade.buy_date} -> {summary.worst_trade.sell_date})"
    )
    for asset, data in realized_pnl_by_asset(matches.round_trips).items():
        click.echo(f"    {asset:<6} ${data['realized_pnl']:,.2f} on {data['amount']:,.6f}")
    for asset, quantity in matches.unmatched.items():
        click.echo(f"  Warning: {quantity} {asset} sold without a matching buy", err=True)


@main.command()
@config_option
@config_sheet_option
@trades_option
@click.option(
    "--prices", "-p",
    required=True,
    type=click.Path(exists=True),
    help="Path to live prices CSV file (asset, price)",
)
@output_dir_option
def value(config: str, config_sheet: Optional[str], trades: str, prices: str, output_dir: Optional[str]):
    """
    Calculate mark-to-market valuation.

    Values current positions at live prices and calculates unrealized
    P&L, total return and allocation.
    """
    ledger_config = _load_config(config, config_sheet)
    out_dir = _output_dir(output_dir, ledger_config)
    logger = get_logger(out_dir)

    trade_list = _load_trades(trades)
    try:
        live_prices = load_live_prices(prices)
    except DataLoadError as e:
        click.echo(f"Error loading prices: {e}", err=True)
        sys.exit(1)

    normalizer = DateNormalizer(reference_year=ledger_config.reference_year, now=datetime.now())
    current = build_positions(replay_ledger(trade_list, ledger_config, normalizer), ledger_config)
    valuation = value_positions(
        current, make_price_lookup(live_prices, ledger_config), ledger_config.starting_capital
    )
    logger.log_valuation_calculated(ledger_config.portfolio_id, valuation)

    click.echo()
    click.echo("Portfolio Valuation:")
    click.echo(f"  Total Value:    ${valuation.total_value:,.2f}")
    click.echo(f"  Invested:       ${valuation.total_invested:,.2f}")
    click.echo(f"  Total Return:   {valuation.total_return_pct:.1f}%")
    click.echo(f"  Unrealized P&L: ${valuation.total_unrealized_pnl:,.2f}")
    click.echo("  Allocation:")
    for asset, weight in valuation.allocation.items():
        click.echo(f"    {asset:<6} {weight:.1%}")

    gainers, losers = get_gainers_and_losers(valuation.position_valuations, top_n=3)
    if gainers:
        click.echo(f"  Top gainer:     {gainers[0].position.asset} ({gainers[0].unrealized_pnl_pct:.1f}%)")
        click.echo(f"  Top loser:      {losers[0].position.asset} ({losers[0].unrealized_pnl_pct:.1f}%)")


@main.command()
@config_option
@config_sheet_option
@trades_option
@click.option("--prices", "-p", type=click.Path(exists=True), default=None,
              help="Path to live prices CSV file (asset, price)")
@click.option("--reference-prices", "-r", type=click.Path(exists=True), default=None,
              help="Path to reference asset price history CSV file (date, price)")
@click.option("--fallback-history", type=click.Path(exists=True), default=None,
              help="History CSV used when there are no trades")
@click.option("--targets", type=click.Path(exists=True), default=None,
              help="Price targets CSV file (asset, target)")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@output_dir_option
def report(
    config: str,
    config_sheet: Optional[str],
    trades: str,
    prices: Optional[str],
    reference_prices: Optional[str],
    fallback_history: Optional[str],
    targets: Optional[str],
    as_json: bool,
    output_dir: Optional[str],
):
    """
    Run the full dashboard computation.

    Replays the ledger once and reports positions, valuation, history with
    benchmark, realized trade analytics and price target upside.
    """
    ledger_config = _load_config(config, config_sheet)
    out_dir = _output_dir(output_dir, ledger_config)
    logger = get_logger(out_dir)
    logger.log_config_loaded(ledger_config, config)

    trade_list = _load_trades(trades)
    now = datetime.now()
    normalizer = DateNormalizer(reference_year=ledger_config.reference_year, now=now)

    try:
        live_prices = load_live_prices(prices) if prices else {}
        reference = load_reference_prices(reference_prices, normalizer) if reference_prices else {}
        fallback = load_history(fallback_history, normalizer) if fallback_history else None
        price_targets = load_targets(targets) if targets else None
    except DataLoadError as e:
        click.echo(f"Error loading inputs: {e}", err=True)
        sys.exit(1)

    result = build_dashboard(
        trades=trade_list,
        live_prices=live_prices,
        config=ledger_config,
        now=now,
        reference_history=reference,
        fallback_history=fallback,
        targets=price_targets,
    )

    portfolio_id = ledger_config.portfolio_id
    logger.log_ledger_replayed(portfolio_id, len(trade_list), result.positions, result.cash)
    logger.log_valuation_calculated(portfolio_id, result.valuation)
    logger.log_history_synthesized(portfolio_id, result.history)
    logger.log_benchmark_compared(portfolio_id, result.benchmark)
    logger.log_trades_analyzed(portfolio_id, result.lot_matches, result.analytics)

    save_positions(result.positions, out_dir / f"positions_{portfolio_id}.csv")
    save_history(result.history, out_dir / f"history_{portfolio_id}.csv")
    save_round_trips(result.lot_matches.round_trips, out_dir / f"round_trips_{portfolio_id}.csv")

    if as_json:
        click.echo(json.dumps(asdict(result), cls=DecimalEncoder, indent=2))
        return

    click.echo(f"{ledger_config.client_name}")
    click.echo(f"  Total Value:   ${result.valuation.total_value:,.2f}")
    click.echo(f"  Total Return:  {result.valuation.total_return_pct:.1f}%")
    click.echo(
        f"  vs {result.benchmark.reference_asset} hold: "
        f"${result.benchmark.beating_benchmark_by:+,.2f}"
    )
    click.echo(f"  Positions:     {len(result.positions)}")
    click.echo(f"  History:       {len(result.history)} points")
    if result.analytics and result.analytics.has_round_trips:
        click.echo(
            f"  Win rate:      {result.analytics.win_rate:.1f}% "
            f"over {result.analytics.round_trip_count} round trips"
        )
    for upside in result.target_upside:
        click.echo(f"  Target {upside.asset}: ${upside.target:,.0f} ({upside.upside_pct:+.0f}%)")


if __name__ == "__main__":
    main()
