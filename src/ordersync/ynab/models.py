#!/usr/bin/env python3
"""
YNAB Domain Models

Type-safe models for the parts of the YNAB API that ordersync reads and writes.
Amounts stay in YNAB milliunits.
"""

from dataclasses import dataclass, field
from typing import Any

from ..core.currency import format_milliunits
from ..core.dates import FinancialDate


@dataclass
class YnabBudget:
    """YNAB budget summary from the budgets endpoint."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "YnabBudget":
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass
class YnabTransaction:
    """
    YNAB transaction from API.

    memo is mutated locally when ordersync writes an annotation, mirroring the
    remote write without a re-fetch.
    """

    id: str
    date: FinancialDate
    amount: int  # milliunits, negative for outflows
    memo: str | None = None
    payee_name: str | None = None
    account_name: str | None = None
    cleared: str = "uncleared"  # "cleared", "uncleared", "reconciled"
    approved: bool = True
    deleted: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "YnabTransaction":
        """
        Create YnabTransaction from API dict.

        Args:
            data: Transaction object from the YNAB API

        Returns:
            YnabTransaction instance
        """
        return cls(
            id=data["id"],
            date=FinancialDate.from_string(data["date"]),
            amount=int(data["amount"]),
            memo=data.get("memo"),
            payee_name=data.get("payee_name"),
            account_name=data.get("account_name"),
            cleared=data.get("cleared", "uncleared"),
            approved=data.get("approved", True),
            deleted=data.get("deleted", False),
        )

    def __str__(self) -> str:
        amount = format_milliunits(self.amount)
        return f"{self.payee_name or '(No Payee)'} transaction on {self.date} of {amount}"


@dataclass(frozen=True)
class TransactionUpdate:
    """One entry of a batched transaction update."""

    id: str
    memo: str
    approved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "memo": self.memo, "approved": self.approved}


@dataclass
class TransactionDelta:
    """Transactions changed since a server_knowledge cursor, and the new cursor."""

    transactions: list[YnabTransaction] = field(default_factory=list)
    server_knowledge: int | None = None
