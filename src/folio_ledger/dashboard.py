"""
End-to-end computation for one dashboard refresh.

Runs every component over the supplied snapshot of trades and prices and
returns fresh results. Nothing is cached between calls.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from folio_ledger.analytics.benchmark import compare_to_benchmark
from folio_ledger.analytics.lots import match_lots
from folio_ledger.analytics.pnl import summarize_round_trips
from folio_ledger.analytics.targets import calculate_upside
from folio_ledger.dates import DateNormalizer
from folio_ledger.models import (
    BenchmarkComparison,
    HistoryPoint,
    LedgerConfig,
    LotMatchResult,
    PortfolioValuation,
    Position,
    PriceTarget,
    TargetUpside,
    Trade,
    TradeAnalyticsSummary,
)
from folio_ledger.portfolio.history import resolve_history, synthesize_history
from folio_ledger.portfolio.replay import build_positions, replay_ledger, sort_trades
from folio_ledger.portfolio.valuation import make_price_lookup, value_positions


@dataclass
class DashboardResult:
    """Everything the presentation layer consumes for one refresh."""
    positions: list[Position]
    cash: Decimal
    valuation: PortfolioValuation
    history: list[HistoryPoint]
    benchmark: BenchmarkComparison
    lot_matches: LotMatchResult
    analytics: Optional[TradeAnalyticsSummary]
    target_upside: list[TargetUpside] = field(default_factory=list)


def build_dashboard(
    trades: list[Trade],
    live_prices: Optional[Mapping[str, Decimal]],
    config: LedgerConfig,
    now: datetime,
    reference_history: Optional[Mapping[str, Decimal]] = None,
    fallback_history: Optional[list[HistoryPoint]] = None,
    targets: Optional[list[PriceTarget]] = None,
) -> DashboardResult:
    """
    Replay the ledger and compute every derived figure.

    Args:
        trades: Full trade list in any order
        live_prices: Current unit prices by asset (may be partial)
        config: Ledger configuration; starting_capital is the invested capital
        now: Substituted for unparseable trade dates
        reference_history: Reference asset prices keyed by ISO date
        fallback_history: History used when there are no trades
        targets: Optional price targets

    Returns:
        DashboardResult
    """
    live_prices = dict(live_prices or {})
    reference_history = reference_history or {}
    normalizer = DateNormalizer(reference_year=config.reference_year, now=now)

    ordered = sort_trades(trades, normalizer)

    state = replay_ledger(ordered, config, normalizer)
    positions = build_positions(state, config)

    price_lookup = make_price_lookup(live_prices, config)
    valuation = value_positions(positions, price_lookup, config.starting_capital)

    history = resolve_history(
        synthesize_history(ordered, config, normalizer, live_prices),
        fallback_history,
    )

    benchmark = compare_to_benchmark(
        history=history,
        total_invested=config.starting_capital,
        price_history=reference_history,
        live_price=live_prices.get(config.reference_asset),
        current_value=valuation.total_value,
        config=config,
    )

    lot_matches = match_lots(ordered, normalizer)
    analytics = summarize_round_trips(lot_matches.round_trips, len(ordered))

    return DashboardResult(
        positions=positions,
        cash=state.cash,
        valuation=valuation,
        history=benchmark.series,
        benchmark=benchmark,
        lot_matches=lot_matches,
        analytics=analytics,
        target_upside=calculate_upside(targets or [], price_lookup),
    )
