"""
Lenient numeric parsing for spreadsheet-sourced values.

Trade sheets carry amounts and prices such as "$104,250.00" or " 0.05 ".
Anything that cannot be read as a finite number becomes zero.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Currency symbols, thousands separators and whitespace
_STRIP_PATTERN = re.compile(r"[^0-9.\-+eE]")


def parse_number(value: Any) -> Decimal:
    """
    Parse a numeric field into a Decimal.

    Args:
        value: String, int, float, Decimal or None

    Returns:
        Parsed Decimal, or Decimal("0") when the value is malformed
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = _STRIP_PATTERN.sub("", str(value))
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            logger.debug("Could not parse numeric value %r, using 0", value)
            return ZERO

    if not result.is_finite():
        return ZERO
    return result
