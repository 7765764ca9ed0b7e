"""
Configuration loading and management for the portfolio ledger engine.

This module handles loading ledger configurations from YAML files,
applying key/value overrides from a spreadsheet "Config" tab, and
validation of configuration parameters.
"""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import yaml

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import LedgerConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_ledger_config(config_path: str | Path) -> LedgerConfig:
    """
    Load ledger configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        LedgerConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

    return parse_ledger_config(raw_config)


def parse_ledger_config(raw: Mapping[str, Any]) -> LedgerConfig:
    """
    Parse and validate raw configuration dictionary into LedgerConfig.

    Args:
        raw: Dictionary loaded from YAML

    Returns:
        Validated LedgerConfig

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    required_fields = ["portfolio_id", "starting_capital", "reference_year"]
    for field in required_fields:
        if field not in raw:
            raise ConfigurationError(f"Missing required configuration field: {field}")

    portfolio_id = str(raw["portfolio_id"])
    if not portfolio_id:
        raise ConfigurationError("portfolio_id cannot be empty")

    starting_capital = _parse_decimal(
        raw["starting_capital"], "starting_capital", min_val=Decimal("0")
    )
    reference_year = _parse_int(raw["reference_year"], "reference_year", min_val=1900)

    start_date = None
    if raw.get("start_date"):
        start_date = _parse_date(
            raw["start_date"], "start_date", reference_year
        ).isoformat()

    full_exit_threshold = _parse_decimal(
        raw.get("full_exit_threshold", "0.99"),
        "full_exit_threshold",
        min_val=Decimal("0"),
        max_val=Decimal("1"),
    )
    if full_exit_threshold == Decimal("0"):
        raise ConfigurationError("full_exit_threshold must be > 0")

    cash_asset = str(raw.get("cash_asset", "USDC")).strip().upper()
    cash_equivalents = tuple(
        str(s).strip().upper() for s in raw.get("cash_equivalents", ["USDC", "USD"])
    )
    if cash_asset not in cash_equivalents:
        cash_equivalents = (cash_asset,) + cash_equivalents

    fallback_raw = raw.get("fallback_prices") or {}
    if not isinstance(fallback_raw, dict):
        raise ConfigurationError("fallback_prices must be a mapping of asset to price")
    fallback_prices = {
        str(asset).strip().upper(): _parse_decimal(
            price, f"fallback_prices.{asset}", min_val=Decimal("0")
        )
        for asset, price in fallback_raw.items()
    }

    return LedgerConfig(
        portfolio_id=portfolio_id,
        starting_capital=starting_capital,
        reference_year=reference_year,
        reference_asset=str(raw.get("reference_asset", "BTC")).strip().upper(),
        reference_start_price=_parse_decimal(
            raw.get("reference_start_price", "0"),
            "reference_start_price",
            min_val=Decimal("0"),
        ),
        start_price_lookback_days=_parse_int(
            raw.get("start_price_lookback_days", 3),
            "start_price_lookback_days",
            min_val=0,
        ),
        start_date=start_date,
        full_exit_threshold=full_exit_threshold,
        dust_threshold=_parse_decimal(
            raw.get("dust_threshold", "0.0001"), "dust_threshold", min_val=Decimal("0")
        ),
        cash_threshold=_parse_decimal(
            raw.get("cash_threshold", "1"), "cash_threshold", min_val=Decimal("0")
        ),
        cash_asset=cash_asset,
        cash_equivalents=cash_equivalents,
        fallback_prices=fallback_prices,
        client_name=str(raw.get("client_name", "Portfolio")),
        output_dir=str(raw.get("output_dir", "output")),
    )


def apply_config_sheet(
    config: LedgerConfig,
    values: Mapping[str, str],
) -> LedgerConfig:
    """
    Apply key/value rows from a spreadsheet Config tab.

    Recognized keys: total_invested, client_name, start_date. Other keys
    are ignored.

    Args:
        config: Base configuration
        values: Key/value pairs from the sheet

    Returns:
        New LedgerConfig with overrides applied

    Raises:
        ConfigurationError: If an override is invalid
    """
    raw = {
        "portfolio_id": config.portfolio_id,
        "starting_capital": config.starting_capital,
        "reference_year": config.reference_year,
        "reference_asset": config.reference_asset,
        "reference_start_price": config.reference_start_price,
        "start_price_lookback_days": config.start_price_lookback_days,
        "start_date": config.start_date,
        "full_exit_threshold": config.full_exit_threshold,
        "dust_threshold": config.dust_threshold,
        "cash_threshold": config.cash_threshold,
        "cash_asset": config.cash_asset,
        "cash_equivalents": list(config.cash_equivalents),
        "fallback_prices": dict(config.fallback_prices),
        "client_name": config.client_name,
        "output_dir": config.output_dir,
    }

    if values.get("total_invested"):
        raw["starting_capital"] = values["total_invested"]
    if values.get("client_name"):
        raw["client_name"] = values["client_name"]
    if values.get("start_date"):
        raw["start_date"] = values["start_date"]

    return parse_ledger_config(raw)


def _parse_date(value: Any, field_name: str, reference_year: int) -> date:
    """
    Parse a date value from various formats.

    Accepts date objects, ISO strings and spreadsheet labels such as
    "Nov 21", which are placed in the reference year.

    Args:
        value: The value to parse (string or date object)
        field_name: Name of the field for error messages
        reference_year: Year used for labels without one

    Returns:
        Parsed date object

    Raises:
        ConfigurationError: If the date cannot be parsed
    """
    parsed = DateNormalizer(reference_year=reference_year, now=datetime.now()).parse(value)
    if parsed is None:
        raise ConfigurationError(
            f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD or 'Mon D'"
        )
    return parsed.date()


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a decimal value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed Decimal

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    try:
        decimal_value = Decimal(str(value).replace(",", "").replace("$", "").strip())
    except Exception:
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {decimal_value}"
        )

    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be <= {max_val}, got {decimal_value}"
        )

    return decimal_value


def _parse_int(value: Any, field_name: str, min_val: int | None = None) -> int:
    """Parse an integer value with an optional lower bound."""
    try:
        int_value = int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")

    if min_val is not None and int_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {int_value}"
        )

    return int_value


def write_config(config: LedgerConfig, output_path: str | Path) -> None:
    """
    Write a LedgerConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "portfolio_id": config.portfolio_id,
        "starting_capital": str(config.starting_capital),
        "reference_year": config.reference_year,
        "reference_asset": config.reference_asset,
        "reference_start_price": str(config.reference_start_price),
        "start_price_lookback_days": config.start_price_lookback_days,
        "start_date": config.start_date,
        "full_exit_threshold": str(config.full_exit_threshold),
        "dust_threshold": str(config.dust_threshold),
        "cash_threshold": str(config.cash_threshold),
        "cash_asset": config.cash_asset,
        "cash_equivalents": list(config.cash_equivalents),
        "fallback_prices": {k: str(v) for k, v in config.fallback_prices.items()},
        "client_name": config.client_name,
        "output_dir": config.output_dir,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
