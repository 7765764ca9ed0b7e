"""
Core data models for the portfolio ledger engine.

This module defines the fundamental data structures used throughout the system,
including trades, FIFO lots, completed round trips, positions, history points
and the analytics/valuation summaries built from them.
All monetary and quantity values use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from folio_ledger.numbers import parse_number


class TradeValidationError(Exception):
    """Raised when a trade record is structurally invalid."""
    pass


class TradeAction(Enum):
    """Trade direction indicator."""
    BUY = "BUY"
    SELL = "SELL"


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    CONFIG_LOADED = "CONFIG_LOADED"
    LEDGER_REPLAYED = "LEDGER_REPLAYED"
    HISTORY_SYNTHESIZED = "HISTORY_SYNTHESIZED"
    BENCHMARK_COMPARED = "BENCHMARK_COMPARED"
    TRADES_ANALYZED = "TRADES_ANALYZED"
    VALUATION_CALCULATED = "VALUATION_CALCULATED"


@dataclass(frozen=True)
class Trade:
    """
    A single entry of the append-only trade ledger.

    Attributes:
        date: Raw date string as entered (e.g. "Nov 21" or "2025-06-20")
        action: BUY or SELL
        asset: Asset symbol, upper-cased
        amount: Quantity traded (non-negative)
        price: Unit price
    """
    date: str
    action: TradeAction
    asset: str
    amount: Decimal
    price: Decimal

    @property
    def notional(self) -> Decimal:
        """Trade value (amount * price)."""
        return self.amount * self.price

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Trade":
        """
        Build a Trade from a loosely-typed row (spreadsheet/CSV record).

        Numeric fields are parsed leniently (malformed values become zero)
        and negative amounts are clamped to zero.
        A missing or unknown action is a structural error.

        Raises:
            TradeValidationError: If the record has no usable action
        """
        raw_action = record.get("action")
        if raw_action is None or not str(raw_action).strip():
            raise TradeValidationError(f"Trade record is missing 'action': {dict(record)}")

        try:
            action = TradeAction(str(raw_action).strip().upper())
        except ValueError:
            raise TradeValidationError(
                f"Unknown trade action {raw_action!r}, expected BUY or SELL"
            )

        raw_date = record.get("date")
        return cls(
            date="" if raw_date is None else str(raw_date).strip(),
            action=action,
            asset=str(record.get("asset") or "").strip().upper(),
            amount=max(parse_number(record.get("amount")), Decimal("0")),
            price=parse_number(record.get("price")),
        )


@dataclass
class Lot:
    """
    Open FIFO lot created by a BUY.

    `remaining` is consumed by later SELLs. Exhausted lots stay in the
    queue so ordering is preserved.
    """
    asset: str
    date: str
    opened_at: datetime
    amount: Decimal
    price: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class CompletedRoundTrip:
    """
    One BUY lot matched (fully or partially) against one SELL.

    Attributes:
        asset: Asset symbol
        buy_date: Raw date of the lot's BUY
        sell_date: Raw date of the SELL
        buy_price: Lot unit price
        sell_price: Sell unit price
        amount: Matched quantity
        profit: amount * (sell_price - buy_price)
        profit_pct: Percentage move from buy to sell (0 when buy price is 0)
        hold_days: Whole days between buy and sell
    """
    asset: str
    buy_date: str
    sell_date: str
    buy_price: Decimal
    sell_price: Decimal
    amount: Decimal
    profit: Decimal
    profit_pct: Decimal
    hold_days: int


@dataclass(frozen=True)
class Position:
    """
    Current holding of a single asset.

    Attributes:
        asset: Asset symbol
        amount: Quantity currently held (always > dust threshold)
        cost_basis: Amount-weighted average price of the held quantity
    """
    asset: str
    amount: Decimal
    cost_basis: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.amount * self.cost_basis


@dataclass(frozen=True)
class HistoryPoint:
    """
    Portfolio value after all trades of one date.

    Attributes:
        date: Raw date label (the trade date string)
        timestamp: Normalized date
        value: Estimated total portfolio value
        benchmark_value: Buy-and-hold value on the same date, once computed
        label: Optional annotation (used by externally supplied history)
    """
    date: str
    timestamp: datetime
    value: Decimal
    benchmark_value: Optional[Decimal] = None
    label: str = ""


@dataclass
class TradeAnalyticsSummary:
    """Aggregate statistics over completed round trips."""
    total_trades: int
    round_trip_count: int
    winners: int
    losers: int
    win_rate: Optional[Decimal]
    best_trade: Optional[CompletedRoundTrip]
    worst_trade: Optional[CompletedRoundTrip]
    avg_hold_days: Optional[Decimal]
    total_realized_profit: Decimal

    @property
    def has_round_trips(self) -> bool:
        return self.round_trip_count > 0


@dataclass
class LotMatchResult:
    """
    Output of FIFO lot matching.

    Attributes:
        round_trips: Completed round trips in the order they were matched
        open_lots: Lot queues per asset after all trades (exhausted lots included)
        unmatched: Sell quantity per asset that found no open lot
    """
    round_trips: list[CompletedRoundTrip]
    open_lots: dict[str, list[Lot]]
    unmatched: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PositionValuation:
    """Mark-to-market valuation of a single position."""
    position: Position
    price: Decimal
    value: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal


@dataclass
class PortfolioValuation:
    """
    Complete portfolio valuation summary.

    Attributes:
        position_valuations: Valued positions in input order
        total_value: Sum of position values
        total_invested: Capital the return is measured against
        total_return_pct: (total_value - total_invested) / total_invested * 100
        total_unrealized_pnl: Sum of unrealized P&L over positions
        allocation: Weight (0-1) per asset with positive value
    """
    position_valuations: list[PositionValuation]
    total_value: Decimal
    total_invested: Decimal
    total_return_pct: Decimal
    total_unrealized_pnl: Decimal
    allocation: dict[str, Decimal]


@dataclass
class BenchmarkComparison:
    """
    Buy-and-hold comparison against a single reference asset.

    Attributes:
        reference_asset: Symbol of the reference asset
        start_key: Date key the start price was resolved for
        start_price: Reference price on the start date
        units_bought: total_invested / start_price
        current_benchmark_value: units_bought * current price
        beating_benchmark_by: current portfolio value - current benchmark value
        series: History points annotated with benchmark values
    """
    reference_asset: str
    start_key: str
    start_price: Decimal
    units_bought: Decimal
    current_benchmark_value: Decimal
    beating_benchmark_by: Decimal
    series: list[HistoryPoint]


@dataclass(frozen=True)
class PriceTarget:
    """Analyst price target for an asset."""
    asset: str
    target: Decimal


@dataclass(frozen=True)
class TargetUpside:
    """Price target compared with the live price."""
    asset: str
    target: Decimal
    current_price: Decimal
    upside_pct: Decimal


@dataclass
class LedgerConfig:
    """
    Ledger configuration loaded from YAML.

    Attributes:
        portfolio_id: Portfolio identifier
        starting_capital: Total invested capital (starting cash)
        reference_year: Year used for "Mon D" dates
        reference_asset: Benchmark asset symbol
        reference_start_price: Last-resort benchmark start price
        start_price_lookback_days: How far back to look for a nearby start price
        start_date: Benchmark start date (ISO); defaults to the first trade date
        full_exit_threshold: Sell fraction treated as a full exit
        dust_threshold: Amounts at or below this are not reported
        cash_threshold: Residual cash above this is reported as a position
        cash_asset: Symbol of the synthetic cash position
        cash_equivalents: Symbols valued at 1
        fallback_prices: Unit prices used when no live price is available
        client_name: Display name
        output_dir: Directory for output files
    """
    portfolio_id: str
    starting_capital: Decimal
    reference_year: int
    reference_asset: str = "BTC"
    reference_start_price: Decimal = Decimal("0")
    start_price_lookback_days: int = 3
    start_date: Optional[str] = None
    full_exit_threshold: Decimal = Decimal("0.99")
    dust_threshold: Decimal = Decimal("0.0001")
    cash_threshold: Decimal = Decimal("1")
    cash_asset: str = "USDC"
    cash_equivalents: tuple[str, ...] = ("USDC", "USD")
    fallback_prices: dict[str, Decimal] = field(default_factory=dict)
    client_name: str = "Portfolio"
    output_dir: str = "output"

    def is_cash(self, asset: str) -> bool:
        return asset == self.cash_asset or asset in self.cash_equivalents


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        portfolio_id: Portfolio involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    portfolio_id: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        portfolio_id: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            portfolio_id=portfolio_id,
            details=details,
        )
