"""
Date normalization for trade ledgers.

Trade dates arrive as short labels ("Nov 21") or full dates in whatever
format the spreadsheet produced. Every raw value maps to an orderable
datetime; values that cannot be parsed fall back to an injected "now".
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)

MONTH_DAY_PATTERN = re.compile(r"^([A-Za-z]{3})\s+(\d{1,2})$")
YEAR_PATTERN = re.compile(r"\d{4}")


@dataclass(frozen=True)
class DateNormalizer:
    """
    Parses raw trade dates into comparable datetimes.

    Attributes:
        reference_year: Year assigned to "Mon D" labels
        now: Substituted for empty or unparseable input
    """
    reference_year: int
    now: datetime

    def normalize(self, raw: Any) -> datetime:
        """
        Normalize a raw date value.

        Args:
            raw: Date label, full date string, date or datetime

        Returns:
            Naive datetime; `now` when the value is empty or unparseable
        """
        parsed = self.parse(raw)
        if parsed is None:
            logger.debug("Unparseable date %r, using %s", raw, self.now.isoformat())
            return self.now
        return parsed

    def parse(self, raw: Any) -> Optional[datetime]:
        """
        Parse a raw date value without the `now` fallback.

        Strings without a four-digit year ("Nov 21", "June 20", "20 Jun")
        are placed in the reference year.

        Returns:
            Naive datetime, or None when the value is empty or unparseable
        """
        if isinstance(raw, datetime):
            return _naive(pd.Timestamp(raw))
        if isinstance(raw, date):
            return datetime(raw.year, raw.month, raw.day)
        if raw is None:
            return None

        text = str(raw).strip()
        if not text:
            return None

        match = MONTH_DAY_PATTERN.match(text)
        if match:
            month, day = match.groups()
            try:
                return datetime.strptime(
                    f"{month.title()} {int(day)} {self.reference_year}", "%b %d %Y"
                )
            except ValueError:
                pass

        if not YEAR_PATTERN.search(text):
            parsed = pd.to_datetime(f"{text} {self.reference_year}", errors="coerce")
            if not pd.isna(parsed):
                return _naive(parsed)

        parsed = pd.to_datetime(text, errors="coerce")
        if pd.isna(parsed):
            return None
        return _naive(parsed)

    def key(self, raw: Any) -> str:
        """ISO date key (YYYY-MM-DD) for price history lookups."""
        return date_key(self.normalize(raw))


def date_key(value: datetime | date) -> str:
    """Format a date as the key used by historical price maps."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded to the nearest day."""
    return round((end - start).total_seconds() / 86400)


def _naive(timestamp: pd.Timestamp) -> datetime:
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert("UTC").tz_localize(None)
    return timestamp.to_pydatetime()
