#!/usr/bin/env python3
"""
Transaction Cache

In-memory mirror of the YNAB transactions that could still receive an order
annotation: the merchant's transactions whose memo is empty or a known
placeholder. Kept current with YNAB's server_knowledge delta sync.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from ..core.dates import FinancialDate
from .models import TransactionDelta, YnabTransaction

logger = logging.getLogger(__name__)


class TransactionSource(Protocol):
    """What the cache needs from the ledger."""

    def get_transactions(
        self,
        budget_id: str,
        since_date: FinancialDate | None = None,
        last_knowledge_of_server: int | None = None,
    ) -> TransactionDelta: ...


class TransactionCache:
    """
    Merchant transactions keyed by id, plus the delta-sync cursor.

    The cursor starts as None, so the first refresh is a full sync.
    """

    def __init__(
        self,
        source: TransactionSource,
        budget_id: str,
        merchant_name: str = "amazon",
        placeholder_memos: Sequence[str] = (),
    ):
        self.source = source
        self.budget_id = budget_id
        self.merchant_name = merchant_name.lower()
        self.placeholder_memos = [p.lower() for p in placeholder_memos if p]
        self.entries: dict[str, YnabTransaction] = {}
        self.cursor: int | None = None
        # Ids whose memo we wrote; never offered again even if the memo
        # happens to contain a placeholder substring
        self.annotated_ids: set[str] = set()

    def is_merchant_transaction(self, transaction: YnabTransaction) -> bool:
        return bool(transaction.payee_name) and self.merchant_name in transaction.payee_name.lower()

    def is_overwritable_memo(self, memo: str | None) -> bool:
        """Empty memos and known stale placeholders may be replaced."""
        if not memo:
            return True
        lowered = memo.lower()
        return any(placeholder in lowered for placeholder in self.placeholder_memos)

    def refresh(self, since_date: FinancialDate | None = None) -> None:
        """
        Apply the ledger's changes since the last refresh.

        Errors from the ledger propagate; the cache and cursor are left as
        they were.
        """
        delta = self.source.get_transactions(self.budget_id, since_date, self.cursor)
        self.cursor = delta.server_knowledge

        cached = 0
        for transaction in delta.transactions:
            if not self.is_merchant_transaction(transaction):
                continue

            if transaction.deleted:
                self.annotated_ids.discard(transaction.id)
                if self.entries.pop(transaction.id, None) is not None:
                    logger.debug(f"🗑️ Deleted transaction: {transaction}")
            elif transaction.id in self.annotated_ids:
                # Our own memo coming back
                if transaction.id in self.entries:
                    self.entries[transaction.id] = transaction
            elif self.is_overwritable_memo(transaction.memo):
                self.entries[transaction.id] = transaction
                cached += 1
                logger.debug(f"📥 Cached transaction: {transaction}")
            elif self.entries.pop(transaction.id, None) is not None:
                # The memo was edited in YNAB since we cached it
                logger.debug(f"Dropped transaction with user memo: {transaction}")

        logger.info(
            f"🔄 Fetched {len(delta.transactions)} transactions, "
            f"{cached} {self.merchant_name} transactions cached"
        )

    def count(self) -> int:
        return len(self.entries)

    def get(self, transaction_id: str) -> YnabTransaction | None:
        return self.entries.get(transaction_id)

    def candidates(self) -> list[tuple[str, YnabTransaction]]:
        """Entries still eligible for an annotation, in cache order."""
        return [
            (tid, t)
            for tid, t in self.entries.items()
            if tid not in self.annotated_ids and self.is_overwritable_memo(t.memo)
        ]

    def set_memo(self, transaction_id: str, memo: str) -> None:
        """Mirror a memo that was written to YNAB."""
        transaction = self.entries.get(transaction_id)
        if transaction is None:
            raise KeyError(transaction_id)
        transaction.memo = memo
        self.annotated_ids.add(transaction_id)

    def __len__(self) -> int:
        return len(self.entries)
