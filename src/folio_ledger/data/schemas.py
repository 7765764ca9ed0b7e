"""
Data schemas for CSV/Parquet file validation.

Defines expected columns and data types for all input and output files.
Sheet exports are read as strings; numeric parsing happens in the core.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Trades sheet (input)
TRADES_SCHEMA = FileSchema(
    name="trades",
    description="Append-only BUY/SELL ledger",
    columns=[
        ColumnSchema(name="date", dtype="str", required=True),
        ColumnSchema(name="action", dtype="str", required=True),
        ColumnSchema(name="asset", dtype="str", required=True),
        ColumnSchema(name="amount", dtype="str", required=True),
        ColumnSchema(name="price", dtype="str", required=True),
    ],
)

# Live prices (input)
LIVE_PRICES_SCHEMA = FileSchema(
    name="live_prices",
    description="Current unit price by asset",
    columns=[
        ColumnSchema(name="asset", dtype="str", required=True),
        ColumnSchema(name="price", dtype="str", required=True),
    ],
)

# Reference asset price history (input)
REFERENCE_PRICES_SCHEMA = FileSchema(
    name="reference_prices",
    description="Daily prices of the benchmark reference asset",
    columns=[
        ColumnSchema(name="date", dtype="str", required=True),
        ColumnSchema(name="price", dtype="str", required=True),
    ],
)

# History sheet (input fallback / output)
HISTORY_SCHEMA = FileSchema(
    name="history",
    description="Portfolio value over time",
    columns=[
        ColumnSchema(name="date", dtype="str", required=True),
        ColumnSchema(name="value", dtype="float64", required=True),
        ColumnSchema(name="benchmark_value", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="label", dtype="str", required=False, nullable=True),
    ],
)

# Config sheet (input)
CONFIG_SHEET_SCHEMA = FileSchema(
    name="config_sheet",
    description="Key/value configuration rows",
    columns=[
        ColumnSchema(name="key", dtype="str", required=True),
        ColumnSchema(name="value", dtype="str", required=True),
    ],
)

# Price targets (input)
TARGETS_SCHEMA = FileSchema(
    name="targets",
    description="Price targets by asset",
    columns=[
        ColumnSchema(name="asset", dtype="str", required=True),
        ColumnSchema(name="target", dtype="str", required=True),
    ],
)

# Positions (output)
POSITIONS_SCHEMA = FileSchema(
    name="positions",
    description="Current positions with cost basis",
    columns=[
        ColumnSchema(name="asset", dtype="str", required=True),
        ColumnSchema(name="amount", dtype="float64", required=True),
        ColumnSchema(name="cost_basis", dtype="float64", required=True),
    ],
)

# Completed round trips (output)
ROUND_TRIPS_SCHEMA = FileSchema(
    name="round_trips",
    description="FIFO-matched buy/sell round trips",
    columns=[
        ColumnSchema(name="asset", dtype="str", required=True),
        ColumnSchema(name="buy_date", dtype="str", required=True),
        ColumnSchema(name="sell_date", dtype="str", required=True),
        ColumnSchema(name="buy_price", dtype="float64", required=True),
        ColumnSchema(name="sell_price", dtype="float64", required=True),
        ColumnSchema(name="amount", dtype="float64", required=True),
        ColumnSchema(name="profit", dtype="float64", required=True),
        ColumnSchema(name="profit_pct", dtype="float64", required=True),
        ColumnSchema(name="hold_days", dtype="int64", required=True),
    ],
)
