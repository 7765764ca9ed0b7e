"""
Portfolio module for the portfolio ledger engine.

Provides ledger replay into current positions, the synthetic value
history and mark-to-market valuation.
"""

from folio_ledger.portfolio.replay import (
    sort_trades,
    replay_ledger,
    build_positions,
    replay_positions,
)
from folio_ledger.portfolio.history import (
    synthesize_history,
    resolve_history,
)
from folio_ledger.portfolio.valuation import (
    make_price_lookup,
    value_positions,
)

__all__ = [
    "sort_trades",
    "replay_ledger",
    "build_positions",
    "replay_positions",
    "synthesize_history",
    "resolve_history",
    "make_price_lookup",
    "value_positions",
]
