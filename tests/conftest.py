"""
Pytest fixtures for the portfolio ledger engine tests.

Provides common test data and utilities used across test modules.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable

import pytest

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import LedgerConfig, Trade


FIXED_NOW = datetime(2025, 12, 31, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    """Fixed "current moment" injected into every computation."""
    return FIXED_NOW


@pytest.fixture
def normalizer(now: datetime) -> DateNormalizer:
    """Date normalizer anchored to 2025."""
    return DateNormalizer(reference_year=2025, now=now)


@pytest.fixture
def sample_config() -> LedgerConfig:
    """Create a sample ledger configuration with $10,000 invested."""
    return LedgerConfig(
        portfolio_id="TEST001",
        starting_capital=Decimal("10000"),
        reference_year=2025,
        reference_asset="BTC",
        reference_start_price=Decimal("104000"),
        fallback_prices={
            "BTC": Decimal("105000"),
            "ETH": Decimal("2500"),
            "SOL": Decimal("150"),
        },
        client_name="Test Client",
    )


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """Factory building trades from spreadsheet-style values."""
    def _make(date: str, action: str, asset: str, amount, price) -> Trade:
        return Trade.from_record({
            "date": date,
            "action": action,
            "asset": asset,
            "amount": amount,
            "price": price,
        })
    return _make


@pytest.fixture
def scenario_trades(make_trade) -> list[Trade]:
    """Buy 0.1 BTC, later sell half at a 20% gain (supplied out of order)."""
    return [
        make_trade("Jul 1", "SELL", "BTC", "0.05", "$120,000"),
        make_trade("Jun 20", "BUY", "BTC", "0.1", "$100,000"),
    ]


@pytest.fixture
def mixed_trades(make_trade) -> list[Trade]:
    """Multi-asset ledger with partial and full exits."""
    return [
        make_trade("Jun 20", "BUY", "BTC", "0.05", "100000"),
        make_trade("Jun 20", "BUY", "ETH", "1", "2000"),
        make_trade("Jun 25", "BUY", "SOL", "10", "140"),
        make_trade("Jul 2", "SELL", "ETH", "1", "2400"),
        make_trade("Jul 10", "SELL", "SOL", "4", "130"),
        make_trade("Jul 15", "BUY", "BTC", "0.01", "110000"),
    ]


@pytest.fixture
def live_prices() -> dict[str, Decimal]:
    """Live prices as returned by the price feed."""
    return {
        "BTC": Decimal("110000"),
        "ETH": Decimal("2600"),
        "SOL": Decimal("160"),
    }


@pytest.fixture
def reference_history() -> dict[str, Decimal]:
    """Sparse BTC price history keyed by ISO date."""
    return {
        "2025-06-20": Decimal("100000"),
        "2025-06-25": Decimal("105000"),
        "2025-07-01": Decimal("108000"),
    }


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write CSV text into the test's temporary directory."""
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path
    return _write
