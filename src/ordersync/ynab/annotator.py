#!/usr/bin/env python3
"""
Transaction Annotator

Writes the item list of each matched order into the memo of its YNAB
transaction, then mirrors the memo into the local cache. Annotated
transactions no longer have an overwritable memo, so later matching runs
skip them.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from ..core.config import Config
from ..core.text import truncate_with_ellipsis
from .cache import TransactionCache
from .models import TransactionUpdate

if TYPE_CHECKING:
    from ..orders.matcher import Match
    from ..orders.models import Order

logger = logging.getLogger(__name__)

# YNAB rejects memos longer than this
MAX_MEMO_LENGTH = 200


class TransactionWriter(Protocol):
    """What the annotator needs from the ledger."""

    def update_transactions(self, budget_id: str, updates: Sequence[TransactionUpdate]) -> list[str]: ...


class TransactionAnnotator:
    """Builds memos for matches and writes them back in one batch."""

    def __init__(
        self,
        writer: TransactionWriter,
        budget_id: str,
        max_item_length: int = 45,
        max_memo_length: int = MAX_MEMO_LENGTH,
        separator: str = ", ",
    ):
        self.writer = writer
        self.budget_id = budget_id
        self.max_item_length = max_item_length
        self.max_memo_length = max_memo_length
        self.separator = separator

    @classmethod
    def from_config(cls, writer: TransactionWriter, config: Config) -> "TransactionAnnotator":
        return cls(
            writer=writer,
            budget_id=config.ynab.budget_id or "",
            max_item_length=config.matching.max_item_length,
        )

    def build_memo(self, items: Sequence[str]) -> str:
        """
        Join item titles into a memo that fits YNAB's limit.

        Each item is cut to max_item_length first, then the joined memo is
        cut to max_memo_length.
        """
        truncated_items = [truncate_with_ellipsis(item, self.max_item_length) for item in items]
        return truncate_with_ellipsis(self.separator.join(truncated_items), self.max_memo_length)

    def build_updates(
        self, matches: Sequence["Match"], orders: Sequence["Order"]
    ) -> list[TransactionUpdate]:
        return [
            TransactionUpdate(
                id=match.transaction_id,
                memo=self.build_memo(orders[match.order_index].items),
                approved=False,
            )
            for match in matches
        ]

    def apply(self, matches: Sequence["Match"], orders: Sequence["Order"], cache: TransactionCache) -> int:
        """
        Write memos for all matches in one request and mirror them locally.

        The cache is only touched after YNAB accepts the batch; if the request
        fails the error propagates and the transactions stay eligible.

        Returns:
            Number of transactions updated
        """
        if not matches:
            logger.info("ℹ️ No transactions to update.")
            return 0

        updates = self.build_updates(matches, orders)

        try:
            self.writer.update_transactions(self.budget_id, updates)
        except Exception as e:
            logger.error(f"❌ Error updating YNAB transactions: {e}")
            raise

        for update in updates:
            transaction = cache.get(update.id)
            if transaction is None:
                continue
            logger.info(f'📝 Adding memo "{update.memo}" to {transaction}')
            cache.set_memo(update.id, update.memo)

        logger.info(f"✅ Successfully updated {len(updates)} transaction(s)")
        return len(updates)
