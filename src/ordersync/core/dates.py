#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable calendar-day wrapper shared by orders and YNAB transactions.
"""

from dataclasses import dataclass
from datetime import date, datetime

MILLISECONDS_PER_DAY = 86_400_000


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "FinancialDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            FinancialDate object
        """
        return cls(date=datetime.strptime(date_str, format).date())

    @classmethod
    def from_datetime(cls, moment: datetime) -> "FinancialDate":
        """
        Truncate a timestamp to its calendar day.

        Timezone-aware timestamps are converted to local time first, so an
        email received late in the evening lands on the local day it arrived.
        """
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        return cls(date=moment.date())

    @classmethod
    def today(cls) -> "FinancialDate":
        """Get today's date."""
        return cls(date=date.today())

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def to_ynab_format(self) -> str:
        """Format as YNAB expects (ISO format)."""
        return self.date.isoformat()

    def difference_ms(self, other: "FinancialDate") -> int:
        """Absolute distance to another date in milliseconds."""
        return abs((self.date - other.date).days) * MILLISECONDS_PER_DAY

    def __str__(self) -> str:
        """String representation."""
        return self.to_iso_string()

    def __lt__(self, other: "FinancialDate") -> bool:
        return self.date < other.date

    def __le__(self, other: "FinancialDate") -> bool:
        return self.date <= other.date

    def __gt__(self, other: "FinancialDate") -> bool:
        return self.date > other.date

    def __ge__(self, other: "FinancialDate") -> bool:
        return self.date >= other.date

    def __repr__(self) -> str:
        """Repr format."""
        return f"FinancialDate(date={self.date!r})"
