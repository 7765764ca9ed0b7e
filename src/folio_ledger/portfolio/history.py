"""
Synthetic value-over-time series from the trade ledger.

Trades are grouped by date label and replayed cumulatively. After each
date the portfolio is marked using that date's own trade price for the
asset it last traded, and live (or fallback) prices for everything else.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import HistoryPoint, LedgerConfig, Trade, TradeAction
from folio_ledger.portfolio.replay import is_full_exit


def group_trades_by_date(trades: Iterable[Trade]) -> dict[str, list[Trade]]:
    """
    Group trades by raw date label.

    Groups keep the order in which each label first appears, so sorted
    input gives chronologically ordered groups.
    """
    groups: dict[str, list[Trade]] = {}
    for trade in trades:
        groups.setdefault(trade.date, []).append(trade)
    return groups


def resolve_asset_price(
    asset: str,
    live_prices: Mapping[str, Decimal],
    config: LedgerConfig,
) -> Decimal:
    """
    Price used to mark an asset that did not trade on the current date.

    Live price when positive, else the configured fallback price, else 0.
    """
    live = live_prices.get(asset)
    if live is not None and live > Decimal("0"):
        return live
    return config.fallback_prices.get(asset, Decimal("0"))


def synthesize_history(
    sorted_trades: list[Trade],
    config: LedgerConfig,
    normalizer: DateNormalizer,
    live_prices: Optional[Mapping[str, Decimal]] = None,
) -> list[HistoryPoint]:
    """
    Build one HistoryPoint per distinct trade date.

    Args:
        sorted_trades: Trades already in chronological order
        config: Ledger configuration (starting capital, cash symbols, fallbacks)
        normalizer: Date normalizer for the current invocation
        live_prices: Current unit prices by asset

    Returns:
        History points in chronological order; empty if there are no trades
    """
    live_prices = live_prices or {}
    holdings: dict[str, Decimal] = {}
    cash = config.starting_capital
    points: list[HistoryPoint] = []

    for label, day_trades in group_trades_by_date(sorted_trades).items():
        for trade in day_trades:
            held = holdings.get(trade.asset, Decimal("0"))
            if trade.action == TradeAction.BUY:
                holdings[trade.asset] = held + trade.amount
                cash -= trade.notional
            else:
                if is_full_exit(trade.amount, held, config.full_exit_threshold):
                    holdings[trade.asset] = Decimal("0")
                else:
                    holdings[trade.asset] = held - trade.amount
                cash += trade.notional

        last_trade = day_trades[-1]
        value = cash
        for asset, amount in holdings.items():
            if amount <= Decimal("0"):
                continue
            if config.is_cash(asset):
                value += amount
            elif asset == last_trade.asset:
                value += amount * last_trade.price
            else:
                value += amount * resolve_asset_price(asset, live_prices, config)

        points.append(
            HistoryPoint(
                date=label,
                timestamp=normalizer.normalize(label),
                value=value,
            )
        )

    return points


def resolve_history(
    synthesized: list[HistoryPoint],
    fallback_history: Optional[list[HistoryPoint]] = None,
) -> list[HistoryPoint]:
    """Use the externally supplied history when nothing could be synthesized."""
    if synthesized:
        return synthesized
    return list(fallback_history or [])
