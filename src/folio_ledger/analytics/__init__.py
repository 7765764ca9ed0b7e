"""
Analytics module for the portfolio ledger engine.

Provides FIFO lot matching, realized P&L statistics, the buy-and-hold
benchmark comparison and price target upside.
"""

from folio_ledger.analytics.lots import match_lots
from folio_ledger.analytics.pnl import (
    summarize_round_trips,
    realized_pnl_by_asset,
)
from folio_ledger.analytics.benchmark import (
    compare_to_benchmark,
    resolve_start_price,
)
from folio_ledger.analytics.targets import calculate_upside

__all__ = [
    "match_lots",
    "summarize_round_trips",
    "realized_pnl_by_asset",
    "compare_to_benchmark",
    "resolve_start_price",
    "calculate_upside",
]
