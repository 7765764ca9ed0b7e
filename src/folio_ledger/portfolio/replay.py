"""
Ledger replay: current positions and cash from the full trade list.

Trades are sorted chronologically and replayed against a per-asset
accumulator of quantity and total cost. All state is local to a single
replay call.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import LedgerConfig, Position, Trade, TradeAction


@dataclass
class Holding:
    """Running quantity and total cost of one asset during replay."""
    amount: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")

    @property
    def cost_basis(self) -> Decimal:
        if self.amount == Decimal("0"):
            return Decimal("0")
        return self.total_cost / self.amount


@dataclass
class LedgerState:
    """
    Result of replaying a ledger.

    Attributes:
        holdings: Per-asset accumulators, in first-seen order
        cash: Starting capital minus purchases plus sale proceeds
    """
    holdings: dict[str, Holding] = field(default_factory=dict)
    cash: Decimal = Decimal("0")


def sort_trades(
    trades: Iterable[Trade],
    normalizer: DateNormalizer,
) -> list[Trade]:
    """
    Sort trades chronologically.

    The sort is stable, so trades on the same date keep their input order.

    Args:
        trades: Trades in any order
        normalizer: Date normalizer for the current invocation

    Returns:
        New list of trades ordered by normalized date
    """
    return sorted(trades, key=lambda t: normalizer.normalize(t.date))


def is_full_exit(quantity: Decimal, held: Decimal, threshold: Decimal) -> bool:
    """
    Whether a sell of `quantity` closes the whole holding.

    Selling at least `threshold` of the held amount resets the holding,
    so tiny floating leftovers are never carried forward.
    """
    return held <= Decimal("0") or quantity >= threshold * held


def apply_trade(
    holding: Holding,
    trade: Trade,
    full_exit_threshold: Decimal,
) -> Decimal:
    """
    Apply one trade to a holding in place.

    Args:
        holding: Accumulator for the trade's asset
        trade: Trade to apply
        full_exit_threshold: Sell fraction treated as a full exit

    Returns:
        Cash delta caused by the trade (negative for buys)
    """
    notional = trade.notional

    if trade.action == TradeAction.BUY:
        holding.amount += trade.amount
        holding.total_cost += notional
        return -notional

    if is_full_exit(trade.amount, holding.amount, full_exit_threshold):
        holding.amount = Decimal("0")
        holding.total_cost = Decimal("0")
    else:
        fraction = min(trade.amount / holding.amount, Decimal("1"))
        holding.total_cost -= fraction * holding.total_cost
        holding.amount -= trade.amount
    return notional


def replay_ledger(
    trades: Iterable[Trade],
    config: LedgerConfig,
    normalizer: DateNormalizer,
) -> LedgerState:
    """
    Replay every trade in chronological order.

    Args:
        trades: Trades in any order
        config: Ledger configuration (starting capital, thresholds)
        normalizer: Date normalizer for the current invocation

    Returns:
        LedgerState with per-asset holdings and the cash balance
    """
    state = LedgerState(cash=config.starting_capital)

    for trade in sort_trades(trades, normalizer):
        holding = state.holdings.setdefault(trade.asset, Holding())
        state.cash += apply_trade(holding, trade, config.full_exit_threshold)

    return state


def build_positions(
    state: LedgerState,
    config: LedgerConfig,
) -> list[Position]:
    """
    Convert a replayed ledger into reportable positions.

    Holdings at or below the dust threshold are dropped. Residual cash
    above the cash threshold is reported as a position in the cash asset;
    if the cash asset was itself traded, the two are merged.

    Args:
        state: Replayed ledger
        config: Ledger configuration

    Returns:
        Positions in first-seen asset order, cash last
    """
    positions: list[Position] = []
    for asset, holding in state.holdings.items():
        if holding.amount > config.dust_threshold:
            positions.append(
                Position(
                    asset=asset,
                    amount=holding.amount,
                    cost_basis=holding.cost_basis,
                )
            )

    if state.cash > config.cash_threshold:
        existing = next(
            (p for p in positions if p.asset == config.cash_asset), None
        )
        if existing is None:
            positions.append(
                Position(
                    asset=config.cash_asset,
                    amount=state.cash,
                    cost_basis=Decimal("1"),
                )
            )
        else:
            amount = existing.amount + state.cash
            merged = Position(
                asset=existing.asset,
                amount=amount,
                cost_basis=(existing.total_cost + state.cash) / amount,
            )
            positions[positions.index(existing)] = merged

    return positions


def replay_positions(
    trades: Iterable[Trade],
    config: LedgerConfig,
    normalizer: DateNormalizer,
) -> list[Position]:
    """Replay the ledger and return current positions."""
    return build_positions(replay_ledger(trades, config, normalizer), config)
