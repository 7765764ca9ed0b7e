"""
Realized P&L statistics over completed round trips.

This module aggregates FIFO round trips into win/loss statistics, best and
worst trades, holding periods and realized profit per asset.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from folio_ledger.models import CompletedRoundTrip, TradeAnalyticsSummary


def calculate_win_rate(
    round_trips: list[CompletedRoundTrip],
) -> dict[str, Optional[Decimal] | int]:
    """
    Calculate win/loss statistics.

    Args:
        round_trips: Completed round trips

    Returns:
        Dictionary with win_count, loss_count, breakeven_count and win_rate
        (percent, None when there are no round trips)
    """
    winners = sum(1 for rt in round_trips if rt.profit > Decimal("0"))
    losers = sum(1 for rt in round_trips if rt.profit < Decimal("0"))

    win_rate: Optional[Decimal] = None
    if round_trips:
        win_rate = Decimal(winners) / Decimal(len(round_trips)) * 100

    return {
        "win_count": winners,
        "loss_count": losers,
        "breakeven_count": len(round_trips) - winners - losers,
        "win_rate": win_rate,
    }


def find_best_and_worst(
    round_trips: list[CompletedRoundTrip],
) -> tuple[Optional[CompletedRoundTrip], Optional[CompletedRoundTrip]]:
    """
    Find the round trips with the highest and lowest dollar profit.

    Ties keep the first round trip encountered.
    """
    best: Optional[CompletedRoundTrip] = None
    worst: Optional[CompletedRoundTrip] = None

    for rt in round_trips:
        if best is None or rt.profit > best.profit:
            best = rt
        if worst is None or rt.profit < worst.profit:
            worst = rt

    return best, worst


def summarize_round_trips(
    round_trips: list[CompletedRoundTrip],
    total_trades: int,
) -> Optional[TradeAnalyticsSummary]:
    """
    Aggregate round trips into a TradeAnalyticsSummary.

    Args:
        round_trips: Completed round trips
        total_trades: Number of raw trades in the ledger

    Returns:
        Summary, or None when the ledger has no trades at all
    """
    if total_trades == 0:
        return None

    stats = calculate_win_rate(round_trips)
    best, worst = find_best_and_worst(round_trips)

    avg_hold_days: Optional[Decimal] = None
    if round_trips:
        avg_hold_days = Decimal(sum(rt.hold_days for rt in round_trips)) / Decimal(len(round_trips))

    return TradeAnalyticsSummary(
        total_trades=total_trades,
        round_trip_count=len(round_trips),
        winners=stats["win_count"],
        losers=stats["loss_count"],
        win_rate=stats["win_rate"],
        best_trade=best,
        worst_trade=worst,
        avg_hold_days=avg_hold_days,
        total_realized_profit=sum((rt.profit for rt in round_trips), Decimal("0")),
    )


def realized_pnl_by_asset(
    round_trips: list[CompletedRoundTrip],
) -> dict[str, dict[str, Decimal]]:
    """
    Calculate realized P&L by asset.

    Args:
        round_trips: Completed round trips

    Returns:
        Dictionary mapping asset to realized_pnl, amount, cost_basis, proceeds
    """
    by_asset: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {
            "realized_pnl": Decimal("0"),
            "amount": Decimal("0"),
            "cost_basis": Decimal("0"),
            "proceeds": Decimal("0"),
        }
    )

    for rt in round_trips:
        by_asset[rt.asset]["realized_pnl"] += rt.profit
        by_asset[rt.asset]["amount"] += rt.amount
        by_asset[rt.asset]["cost_basis"] += rt.amount * rt.buy_price
        by_asset[rt.asset]["proceeds"] += rt.amount * rt.sell_price

    return dict(by_asset)
