"""
Buy-and-hold benchmark comparison.

Answers whether active trading beats putting all starting capital into a
single reference asset on day one, using the same capital and the same
valuation dates as the portfolio history.
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from folio_ledger.dates import date_key
from folio_ledger.models import BenchmarkComparison, HistoryPoint, LedgerConfig


def resolve_start_price(
    price_history: Mapping[str, Decimal],
    start_key: str,
    config: LedgerConfig,
) -> Decimal:
    """
    Resolve the reference asset's price on the portfolio start date.

    Lookup order: exact date key, then the closest earlier date within
    `config.start_price_lookback_days`, then `config.reference_start_price`.

    Args:
        price_history: Reference prices keyed by ISO date
        start_key: ISO date key of the start date
        config: Ledger configuration

    Returns:
        Start price
    """
    price = price_history.get(start_key)
    if price is not None and price > Decimal("0"):
        return price

    try:
        start = date.fromisoformat(start_key)
    except ValueError:
        return config.reference_start_price

    for offset in range(1, config.start_price_lookback_days + 1):
        nearby = price_history.get(date_key(start - timedelta(days=offset)))
        if nearby is not None and nearby > Decimal("0"):
            return nearby

    return config.reference_start_price


def resolve_point_price(
    key: str,
    price_history: Mapping[str, Decimal],
    live_price: Optional[Decimal],
    start_price: Decimal,
) -> Decimal:
    """Reference price for a history date: history, then live, then start price."""
    price = price_history.get(key)
    if price is not None and price > Decimal("0"):
        return price
    if live_price is not None and live_price > Decimal("0"):
        return live_price
    return start_price


def round_currency(value: Decimal) -> Decimal:
    """Round to whole currency units, halves up."""
    return value.to_integral_value(rounding=ROUND_HALF_UP)


def compare_to_benchmark(
    history: list[HistoryPoint],
    total_invested: Decimal,
    price_history: Mapping[str, Decimal],
    live_price: Optional[Decimal],
    current_value: Decimal,
    config: LedgerConfig,
    start_key: Optional[str] = None,
) -> BenchmarkComparison:
    """
    Compute the buy-and-hold series and the current-moment delta.

    Args:
        history: Portfolio history points
        total_invested: Starting capital
        price_history: Reference asset prices keyed by ISO date
        live_price: Current reference asset price
        current_value: Current portfolio value
        config: Ledger configuration
        start_key: Start date key; defaults to config.start_date, then the
            first history point

    Returns:
        BenchmarkComparison whose series shares the history's date axis
    """
    if start_key is None:
        if config.start_date:
            start_key = config.start_date
        elif history:
            start_key = date_key(history[0].timestamp)
        else:
            start_key = ""

    start_price = resolve_start_price(price_history, start_key, config)

    units_bought = Decimal("0")
    if start_price > Decimal("0"):
        units_bought = total_invested / start_price

    series = [
        replace(
            point,
            benchmark_value=round_currency(
                units_bought
                * resolve_point_price(
                    date_key(point.timestamp), price_history, live_price, start_price
                )
            ),
        )
        for point in history
    ]

    current_price = live_price if live_price is not None and live_price > Decimal("0") else start_price
    current_benchmark_value = units_bought * current_price

    return BenchmarkComparison(
        reference_asset=config.reference_asset,
        start_key=start_key,
        start_price=start_price,
        units_bought=units_bought,
        current_benchmark_value=current_benchmark_value,
        beating_benchmark_by=current_value - current_benchmark_value,
        series=series,
    )
