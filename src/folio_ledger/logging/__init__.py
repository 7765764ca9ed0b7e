"""
Decision logging module for the portfolio ledger engine.

Provides the append-only JSONL audit trail written by the CLI.
"""

from folio_ledger.logging.decision_log import (
    DECISION_LOG_NAME,
    DecimalEncoder,
    DecisionLogger,
    get_logger,
)

__all__ = [
    "DECISION_LOG_NAME",
    "DecimalEncoder",
    "DecisionLogger",
    "get_logger",
]
