"""
Data ingestion module for the portfolio ledger engine.

Provides functionality for loading trades, prices and the auxiliary
spreadsheet tabs from CSV/Parquet files, and for saving computed results.
"""

from folio_ledger.data.loaders import (
    DataLoadError,
    load_trades,
    load_live_prices,
    load_reference_prices,
    load_history,
    load_config_sheet,
    load_targets,
    save_positions,
    save_history,
    save_round_trips,
)
from folio_ledger.data.schemas import (
    TRADES_SCHEMA,
    LIVE_PRICES_SCHEMA,
    REFERENCE_PRICES_SCHEMA,
    HISTORY_SCHEMA,
)

__all__ = [
    "DataLoadError",
    "load_trades",
    "load_live_prices",
    "load_reference_prices",
    "load_history",
    "load_config_sheet",
    "load_targets",
    "save_positions",
    "save_history",
    "save_round_trips",
    "TRADES_SCHEMA",
    "LIVE_PRICES_SCHEMA",
    "REFERENCE_PRICES_SCHEMA",
    "HISTORY_SCHEMA",
]
