#!/usr/bin/env python3
"""
Order Domain Models

Raw order-confirmation emails as fetched from the mailbox, and the normalized
Order records extracted from them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.currency import format_milliunits
from ..core.dates import FinancialDate


@dataclass
class OrderEmail:
    """Represents one email fetched from the mailbox."""

    message_id: str
    subject: str
    sender: str
    date: datetime
    html_content: str | None = None
    text_content: str | None = None
    folder: str = "INBOX"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def body(self) -> str | None:
        """HTML body if present, otherwise the plain text body."""
        return self.html_content or self.text_content


@dataclass(frozen=True)
class Order:
    """
    A single merchant purchase extracted from one email.

    amount is in milliunits and negative (a debit), mirroring how YNAB
    records the matching outflow.
    """

    date: FinancialDate
    amount: int
    items: tuple[str, ...]
    source_ref: str

    def __str__(self) -> str:
        return f"{len(self.items)} item(s) for {format_milliunits(abs(self.amount))} on {self.date}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date.to_iso_string(),
            "amount": self.amount,
            "items": list(self.items),
            "source_ref": self.source_ref,
        }
