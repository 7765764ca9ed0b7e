"""
Portfolio valuation and mark-to-market calculations.

This module prices open positions at live prices, calculating unrealized
P&L, total value, total return against invested capital and allocation
weights.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Callable, Mapping, Optional

from folio_ledger.models import (
    LedgerConfig,
    PortfolioValuation,
    Position,
    PositionValuation,
)

PriceLookup = Callable[[str], Decimal]


def make_price_lookup(
    live_prices: Optional[Mapping[str, Decimal]],
    config: LedgerConfig,
) -> PriceLookup:
    """
    Build the asset -> unit price function used for valuation.

    Cash equivalents are worth 1. Assets without a positive live price
    are worth 0.

    Args:
        live_prices: Current unit prices by asset (may be partial or None)
        config: Ledger configuration

    Returns:
        Callable mapping an asset symbol to its unit price
    """
    prices = dict(live_prices or {})

    def lookup(asset: str) -> Decimal:
        if config.is_cash(asset):
            return Decimal("1")
        price = prices.get(asset)
        if price is None or price <= Decimal("0"):
            return Decimal("0")
        return price

    return lookup


def value_position(position: Position, price: Decimal) -> PositionValuation:
    """
    Value a single position.

    Args:
        position: Position to value
        price: Current unit price

    Returns:
        PositionValuation with market value and unrealized P&L
    """
    value = position.amount * price
    total_cost = position.total_cost
    unrealized_pnl = value - total_cost

    # Avoid division by zero
    if total_cost != Decimal("0"):
        unrealized_pnl_pct = unrealized_pnl / total_cost * 100
    else:
        unrealized_pnl_pct = Decimal("0")

    return PositionValuation(
        position=position,
        price=price,
        value=value,
        unrealized_pnl=unrealized_pnl,
        unrealized_pnl_pct=unrealized_pnl_pct,
    )


def calculate_total_return(
    total_value: Decimal,
    total_invested: Decimal,
) -> Decimal:
    """
    Calculate total return as a percentage of invested capital.

    Returns:
        Return in percent (e.g. 5 for 5%), 0 when nothing was invested
    """
    if total_invested <= Decimal("0"):
        return Decimal("0")
    return (total_value - total_invested) / total_invested * 100


def calculate_allocation(
    valuations: list[PositionValuation],
    total_value: Optional[Decimal] = None,
) -> dict[str, Decimal]:
    """
    Calculate allocation weights by asset.

    Args:
        valuations: Valued positions
        total_value: Optional pre-calculated total value

    Returns:
        Dictionary mapping asset to weight (0-1), positive values only
    """
    if total_value is None:
        total_value = sum((v.value for v in valuations), Decimal("0"))

    if total_value <= Decimal("0"):
        return {}

    # Aggregate value by asset
    asset_values: dict[str, Decimal] = defaultdict(Decimal)
    for val in valuations:
        if val.value > Decimal("0"):
            asset_values[val.position.asset] += val.value

    return {asset: value / total_value for asset, value in asset_values.items()}


def value_positions(
    positions: list[Position],
    price_lookup: PriceLookup,
    total_invested: Decimal,
) -> PortfolioValuation:
    """
    Create a complete portfolio valuation.

    Args:
        positions: Current positions
        price_lookup: Asset -> unit price
        total_invested: Capital the return is measured against

    Returns:
        PortfolioValuation with per-position values and totals
    """
    valuations = [value_position(p, price_lookup(p.asset)) for p in positions]

    total_value = sum((v.value for v in valuations), Decimal("0"))
    total_unrealized_pnl = sum((v.unrealized_pnl for v in valuations), Decimal("0"))

    return PortfolioValuation(
        position_valuations=valuations,
        total_value=total_value,
        total_invested=total_invested,
        total_return_pct=calculate_total_return(total_value, total_invested),
        total_unrealized_pnl=total_unrealized_pnl,
        allocation=calculate_allocation(valuations, total_value),
    )


def get_gainers_and_losers(
    valuations: list[PositionValuation],
    top_n: int = 5,
) -> tuple[list[PositionValuation], list[PositionValuation]]:
    """
    Get top gainers and losers by unrealized P&L percentage.

    Args:
        valuations: Valued positions
        top_n: Number of top/bottom positions to return

    Returns:
        Tuple of (top_gainers, top_losers) sorted by P&L %
    """
    sorted_by_pnl = sorted(
        valuations,
        key=lambda v: v.unrealized_pnl_pct,
        reverse=True,
    )

    top_gainers = sorted_by_pnl[:top_n]
    top_losers = sorted_by_pnl[-top_n:][::-1]  # Reverse to show worst first

    return top_gainers, top_losers
