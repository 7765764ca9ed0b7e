"""
Price target upside relative to live prices.
"""

from decimal import Decimal

from folio_ledger.models import PriceTarget, TargetUpside
from folio_ledger.portfolio.valuation import PriceLookup


def calculate_upside(
    targets: list[PriceTarget],
    price_lookup: PriceLookup,
) -> list[TargetUpside]:
    """
    Compare each price target with the current price.

    Args:
        targets: Price targets
        price_lookup: Asset -> current unit price

    Returns:
        One TargetUpside per target; upside is 0 when the price is unknown
    """
    results = []
    for target in targets:
        current = price_lookup(target.asset)
        upside = Decimal("0")
        if current > Decimal("0"):
            upside = (target.target - current) / current * 100
        results.append(
            TargetUpside(
                asset=target.asset,
                target=target.target,
                current_price=current,
                upside_pct=upside,
            )
        )
    return results
