"""
Portfolio ledger engine (folio-ledger)

Reconstructs holdings, cost basis, realized and unrealized profit and a
value-over-time series from an append-only list of BUY/SELL trades, and
benchmarks the result against buying and holding a single reference asset.

Every computation is a stateless replay of the full trade list.
"""

__version__ = "0.1.0"
__author__ = "Folio Ledger Team"
