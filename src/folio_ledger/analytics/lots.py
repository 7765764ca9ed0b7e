"""
FIFO lot matching for realized trade analytics.

Every BUY opens a lot for its asset. Every SELL consumes the oldest lots
with remaining quantity first, producing one CompletedRoundTrip per lot
touched.
"""

import logging
from decimal import Decimal

from folio_ledger.dates import DateNormalizer, days_between
from folio_ledger.models import (
    CompletedRoundTrip,
    Lot,
    LotMatchResult,
    Trade,
    TradeAction,
)

logger = logging.getLogger(__name__)


def _round_trip(lot: Lot, sell: Trade, quantity: Decimal, normalizer: DateNormalizer) -> CompletedRoundTrip:
    if lot.price != Decimal("0"):
        profit_pct = (sell.price - lot.price) / lot.price * 100
    else:
        profit_pct = Decimal("0")

    return CompletedRoundTrip(
        asset=lot.asset,
        buy_date=lot.date,
        sell_date=sell.date,
        buy_price=lot.price,
        sell_price=sell.price,
        amount=quantity,
        profit=quantity * (sell.price - lot.price),
        profit_pct=profit_pct,
        hold_days=days_between(lot.opened_at, normalizer.normalize(sell.date)),
    )


def match_lots(
    sorted_trades: list[Trade],
    normalizer: DateNormalizer,
) -> LotMatchResult:
    """
    Match sells against buys, oldest lot first, per asset.

    Sell quantity exceeding all open lots is not matched; it is reported
    in `LotMatchResult.unmatched` and produces no round trip.

    Args:
        sorted_trades: Trades already in chronological order
        normalizer: Date normalizer for the current invocation

    Returns:
        LotMatchResult with round trips, lot queues and unmatched quantities
    """
    queues: dict[str, list[Lot]] = {}
    round_trips: list[CompletedRoundTrip] = []
    unmatched: dict[str, Decimal] = {}

    for trade in sorted_trades:
        queue = queues.setdefault(trade.asset, [])

        if trade.action == TradeAction.BUY:
            queue.append(
                Lot(
                    asset=trade.asset,
                    date=trade.date,
                    opened_at=normalizer.normalize(trade.date),
                    amount=trade.amount,
                    price=trade.price,
                    remaining=trade.amount,
                )
            )
            continue

        to_match = trade.amount
        for lot in queue:
            if to_match <= Decimal("0"):
                break
            if lot.remaining <= Decimal("0"):
                continue

            matched = min(to_match, lot.remaining)
            round_trips.append(_round_trip(lot, trade, matched, normalizer))
            lot.remaining -= matched
            to_match -= matched

        if to_match > Decimal("0"):
            logger.debug(
                "SELL %s %s on %s exceeds open lots by %s",
                trade.amount, trade.asset, trade.date, to_match,
            )
            unmatched[trade.asset] = unmatched.get(trade.asset, Decimal("0")) + to_match

    return LotMatchResult(
        round_trips=round_trips,
        open_lots=queues,
        unmatched=unmatched,
    )


def get_open_lots(result: LotMatchResult, asset: str) -> list[Lot]:
    """Lots of an asset that still have remaining quantity."""
    return [lot for lot in result.open_lots.get(asset, []) if lot.remaining > Decimal("0")]
