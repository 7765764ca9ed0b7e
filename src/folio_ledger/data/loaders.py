"""
Data loading and saving functions for CSV/Parquet files.

Handles ingestion of the spreadsheet exports (trades, live prices,
reference price history, history, config and targets tabs), as well as
output of positions, history series and round trips.
"""

from decimal import Decimal
from pathlib import Path

import pandas as pd

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import (
    CompletedRoundTrip,
    HistoryPoint,
    Position,
    PriceTarget,
    Trade,
    TradeValidationError,
)
from folio_ledger.numbers import parse_number
from folio_ledger.data.schemas import (
    CONFIG_SHEET_SCHEMA,
    HISTORY_SCHEMA,
    LIVE_PRICES_SCHEMA,
    POSITIONS_SCHEMA,
    REFERENCE_PRICES_SCHEMA,
    ROUND_TRIPS_SCHEMA,
    TARGETS_SCHEMA,
    TRADES_SCHEMA,
    FileSchema,
)


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_trades(file_path: str | Path) -> list[Trade]:
    """
    Load the trade ledger from a CSV file.

    Args:
        file_path: Path to CSV file with columns: date, action, asset, amount, price

    Returns:
        List of Trade objects in file order

    Raises:
        DataLoadError: If the file cannot be loaded or a row has no valid action
    """
    df = _load_csv(Path(file_path), TRADES_SCHEMA)

    trades = []
    for index, row in df.iterrows():
        try:
            trades.append(Trade.from_record(row.to_dict()))
        except TradeValidationError as e:
            raise DataLoadError(f"Invalid trade on row {index + 2} of {file_path}: {e}")

    return trades


def load_live_prices(file_path: str | Path) -> dict[str, Decimal]:
    """
    Load current prices from CSV file.

    Args:
        file_path: Path to CSV file with columns: asset, price

    Returns:
        Dictionary mapping asset -> price (non-positive prices are dropped)
    """
    df = _load_csv(Path(file_path), LIVE_PRICES_SCHEMA)
    df["asset"] = df["asset"].str.upper().str.strip()

    prices = {}
    for _, row in df.iterrows():
        price = parse_number(row["price"])
        if row["asset"] and price > Decimal("0"):
            prices[str(row["asset"])] = price

    return prices


def load_reference_prices(
    file_path: str | Path,
    normalizer: DateNormalizer,
) -> dict[str, Decimal]:
    """
    Load the reference asset's historical prices.

    Args:
        file_path: Path to CSV file with columns: date, price
        normalizer: Used to turn raw dates into ISO date keys

    Returns:
        Dictionary mapping ISO date key -> price; later rows win on duplicates
    """
    df = _load_csv(Path(file_path), REFERENCE_PRICES_SCHEMA)

    prices = {}
    for _, row in df.iterrows():
        if not row["date"]:
            continue
        price = parse_number(row["price"])
        if price > Decimal("0"):
            prices[normalizer.key(row["date"])] = price

    return prices


def load_history(
    file_path: str | Path,
    normalizer: DateNormalizer,
) -> list[HistoryPoint]:
    """
    Load an externally maintained History tab.

    Used as the history series when the ledger has no trades.

    Args:
        file_path: Path to CSV file with columns: date, value[, label]
        normalizer: Date normalizer for the current invocation

    Returns:
        History points in file order
    """
    df = _load_csv(Path(file_path), HISTORY_SCHEMA)

    points = []
    for _, row in df.iterrows():
        points.append(
            HistoryPoint(
                date=str(row["date"]),
                timestamp=normalizer.normalize(row["date"]),
                value=parse_number(row["value"]),
                label=str(row.get("label", "") or ""),
            )
        )

    return points


def load_config_sheet(file_path: str | Path) -> dict[str, str]:
    """
    Load key/value rows from a Config tab.

    Rows with an empty key or value are skipped.
    """
    df = _load_csv(Path(file_path), CONFIG_SHEET_SCHEMA)

    values = {}
    for _, row in df.iterrows():
        key = str(row["key"]).strip()
        value = str(row["value"]).strip()
        if key and value:
            values[key] = value

    return values


def load_targets(file_path: str | Path) -> list[PriceTarget]:
    """Load price targets from CSV file (columns: asset, target)."""
    df = _load_csv(Path(file_path), TARGETS_SCHEMA)

    return [
        PriceTarget(
            asset=str(row["asset"]).upper().strip(),
            target=parse_number(row["target"]),
        )
        for _, row in df.iterrows()
        if str(row["asset"]).strip()
    ]


def save_positions(
    positions: list[Position],
    output_path: str | Path,
) -> Path:
    """
    Save positions to CSV file.

    Args:
        positions: List of Position objects to save
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for pos in positions:
        records.append({
            "asset": pos.asset,
            "amount": float(pos.amount),
            "cost_basis": float(pos.cost_basis),
        })

    df = pd.DataFrame(records, columns=POSITIONS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def save_history(
    history: list[HistoryPoint],
    output_path: str | Path,
) -> Path:
    """
    Save a history series (with benchmark values) to CSV file.

    Args:
        history: List of HistoryPoint objects
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for point in history:
        records.append({
            "date": point.date,
            "value": float(point.value),
            "benchmark_value": (
                float(point.benchmark_value) if point.benchmark_value is not None else None
            ),
            "label": point.label,
        })

    df = pd.DataFrame(records, columns=HISTORY_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def save_round_trips(
    round_trips: list[CompletedRoundTrip],
    output_path: str | Path,
) -> Path:
    """
    Save completed round trips to CSV file.

    Args:
        round_trips: List of CompletedRoundTrip objects
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for rt in round_trips:
        records.append({
            "asset": rt.asset,
            "buy_date": rt.buy_date,
            "sell_date": rt.sell_date,
            "buy_price": float(rt.buy_price),
            "sell_price": float(rt.sell_price),
            "amount": float(rt.amount),
            "profit": float(rt.profit),
            "profit_pct": float(rt.profit_pct),
            "hold_days": rt.hold_days,
        })

    df = pd.DataFrame(records, columns=ROUND_TRIPS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file and validate against schema.

    Every column is read as a string and blank cells become "", so values
    such as "$104,250" reach the core untouched.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    # Support both CSV and Parquet
    if file_path.suffix.lower() == ".parquet":
        try:
            df = pd.read_parquet(file_path).astype(str)
        except Exception as e:
            raise DataLoadError(f"Failed to load parquet file {file_path}: {e}")
    else:
        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        except pd.errors.EmptyDataError:
            df = pd.DataFrame(columns=schema.all_columns)
        except Exception as e:
            raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    df.columns = [str(c).strip().lower() for c in df.columns]

    # Validate columns
    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
