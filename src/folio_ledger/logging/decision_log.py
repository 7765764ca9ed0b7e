"""
Audit trail for ledger computations.

Each CLI run appends one JSON object per computed result (config, replay,
history, benchmark, analytics, valuation) to ``decision_log.jsonl`` in the
output directory. The file is never rewritten, so successive refreshes of
the same ledger can be compared line by line.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

from folio_ledger.models import (
    ActionType,
    BenchmarkComparison,
    DecisionLogEntry,
    HistoryPoint,
    LedgerConfig,
    LotMatchResult,
    PortfolioValuation,
    Position,
    TradeAnalyticsSummary,
)

DECISION_LOG_NAME = "decision_log.jsonl"


class DecisionLogger:
    """
    JSONL writer/reader for DecisionLogEntry records.

    Amounts are stored as strings so Decimal values survive the round trip
    through JSON unchanged.
    """

    def __init__(self, log_path: str | Path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """Append one entry as a single JSON line."""
        line = json.dumps(
            {
                "timestamp": entry.timestamp,
                "action_type": entry.action_type,
                "portfolio_id": entry.portfolio_id,
                "details": entry.details,
            },
            cls=DecimalEncoder,
        )
        with open(self.log_path, "a") as f:
            f.write(line + "\n")

    def _log(self, action_type: ActionType, portfolio_id: Optional[str], details: dict) -> None:
        self.log(
            DecisionLogEntry.create(
                action_type=action_type,
                portfolio_id=portfolio_id,
                details=details,
            )
        )

    def log_config_loaded(
        self,
        config: LedgerConfig,
        config_path: str,
    ) -> None:
        """Record the effective settings a run was computed with."""
        details = {
            "config_path": config_path,
            "starting_capital": str(config.starting_capital),
            "reference_year": config.reference_year,
            "reference_asset": config.reference_asset,
            "full_exit_threshold": str(config.full_exit_threshold),
            "dust_threshold": str(config.dust_threshold),
        }
        self._log(ActionType.CONFIG_LOADED, config.portfolio_id, details)

    def log_ledger_replayed(
        self,
        portfolio_id: str,
        trade_count: int,
        positions: list[Position],
        cash: Decimal,
    ) -> None:
        """
        Log a ledger replay.

        Args:
            portfolio_id: Portfolio identifier
            trade_count: Number of trades replayed
            positions: Resulting positions
            cash: Resulting cash balance
        """
        details = {
            "trade_count": trade_count,
            "num_positions": len(positions),
            "assets": [p.asset for p in positions],
            "cash": str(cash),
        }
        self._log(ActionType.LEDGER_REPLAYED, portfolio_id, details)

    def log_history_synthesized(
        self,
        portfolio_id: str,
        history: list[HistoryPoint],
    ) -> None:
        """Log history synthesis."""
        details = {
            "num_points": len(history),
            "first_date": history[0].date if history else None,
            "last_date": history[-1].date if history else None,
            "last_value": str(history[-1].value) if history else None,
        }
        self._log(ActionType.HISTORY_SYNTHESIZED, portfolio_id, details)

    def log_benchmark_compared(
        self,
        portfolio_id: str,
        comparison: BenchmarkComparison,
    ) -> None:
        """Log a benchmark comparison."""
        details = {
            "reference_asset": comparison.reference_asset,
            "start_key": comparison.start_key,
            "start_price": str(comparison.start_price),
            "units_bought": str(comparison.units_bought),
            "beating_benchmark_by": str(comparison.beating_benchmark_by),
        }
        self._log(ActionType.BENCHMARK_COMPARED, portfolio_id, details)

    def log_trades_analyzed(
        self,
        portfolio_id: str,
        matches: LotMatchResult,
        summary: Optional[TradeAnalyticsSummary],
    ) -> None:
        """
        Log FIFO trade analytics.

        Args:
            portfolio_id: Portfolio identifier
            matches: Lot matching result
            summary: Aggregate statistics (None when there were no trades)
        """
        details = {
            "round_trips": len(matches.round_trips),
            "unmatched": {k: str(v) for k, v in matches.unmatched.items()},
            "win_rate": (
                str(summary.win_rate) if summary and summary.win_rate is not None else None
            ),
            "total_realized_profit": (
                str(summary.total_realized_profit) if summary else "0"
            ),
        }
        self._log(ActionType.TRADES_ANALYZED, portfolio_id, details)

    def log_valuation_calculated(
        self,
        portfolio_id: str,
        valuation: PortfolioValuation,
    ) -> None:
        """Record the mark-to-market totals."""
        details = {
            "total_value": str(valuation.total_value),
            "total_invested": str(valuation.total_invested),
            "total_return_pct": str(valuation.total_return_pct),
            "total_unrealized_pnl": str(valuation.total_unrealized_pnl),
            "num_positions": len(valuation.position_valuations),
        }
        self._log(ActionType.VALUATION_CALCULATED, portfolio_id, details)

    def read_log(self) -> list[DecisionLogEntry]:
        """Load every entry written so far, oldest first."""
        return list(self._iter_entries())

    def filter_by_action_type(
        self,
        action_type: ActionType,
        portfolio_id: Optional[str] = None,
    ) -> list[DecisionLogEntry]:
        """
        Entries of one action type, optionally for a single portfolio.

        Args:
            action_type: Action type to keep
            portfolio_id: If given, only entries for this portfolio

        Returns:
            Matching entries in file order
        """
        return [
            entry
            for entry in self._iter_entries()
            if entry.action_type == action_type
            and (portfolio_id is None or entry.portfolio_id == portfolio_id)
        ]

    def _iter_entries(self) -> Iterator[DecisionLogEntry]:
        if not self.log_path.exists():
            return

        with open(self.log_path, "r") as f:
            for raw in f:
                if not raw.strip():
                    continue
                record = json.loads(raw)
                yield DecisionLogEntry(
                    timestamp=datetime.fromisoformat(record["timestamp"]),
                    action_type=ActionType(record["action_type"]),
                    portfolio_id=record.get("portfolio_id"),
                    details=record.get("details", {}),
                )


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder for Decimal amounts, dates and enum members."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


_loggers: dict[Path, DecisionLogger] = {}


def get_logger(output_dir: str | Path = "output") -> DecisionLogger:
    """
    Return the decision logger writing into ``output_dir``.

    Loggers are cached per resolved log path, so repeated calls for the
    same directory share one instance.
    """
    log_path = (Path(output_dir) / DECISION_LOG_NAME).resolve()
    if log_path not in _loggers:
        _loggers[log_path] = DecisionLogger(log_path)
    return _loggers[log_path]
