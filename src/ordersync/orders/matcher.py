#!/usr/bin/env python3
"""
Order Matching Module

Pairs extracted orders with cached YNAB transactions.

Every (order, transaction) pair within the date and amount tolerances is a
candidate. Candidates are ranked by date distance, then amount distance, and
consumed greedily so each order and each transaction is used at most once.
The assignment is local, not globally optimal: an early claim on a
transaction can push another order to a worse pairing or none.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.config import Config
from ..core.dates import MILLISECONDS_PER_DAY
from ..ynab.cache import TransactionCache
from .models import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    """A proposed pairing of orders[order_index] with a transaction."""

    order_index: int
    transaction_id: str
    date_difference_ms: int
    price_difference_milliunits: int

    @property
    def is_exact(self) -> bool:
        return self.date_difference_ms == 0 and self.price_difference_milliunits == 0

    def sort_key(self) -> tuple[int, int]:
        return (self.date_difference_ms, self.price_difference_milliunits)


class OrderMatcher:
    """Order to YNAB transaction matcher."""

    def __init__(self, date_tolerance_days: int = 4, dollar_tolerance_milliunits: int = 500):
        """
        Initialize the matcher.

        Args:
            date_tolerance_days: Largest allowed distance between order and transaction dates
            dollar_tolerance_milliunits: Largest allowed amount difference
        """
        self.date_tolerance_days = date_tolerance_days
        self.dollar_tolerance_milliunits = dollar_tolerance_milliunits

    @classmethod
    def from_config(cls, config: Config) -> "OrderMatcher":
        return cls(
            date_tolerance_days=config.matching.date_tolerance_days,
            dollar_tolerance_milliunits=config.matching.dollar_tolerance_milliunits,
        )

    @property
    def date_tolerance_ms(self) -> int:
        return self.date_tolerance_days * MILLISECONDS_PER_DAY

    def find_candidates(self, orders: Sequence[Order], cache: TransactionCache) -> list[Match]:
        """
        All pairs within tolerance, in discovery order.

        Scanning transactions for an order stops at the first exact match.
        Near matches found before it are kept, but the exact pair sorts ahead
        of them in match(), which then claims the order.
        """
        transactions = cache.candidates()
        candidates: list[Match] = []

        for order_index, order in enumerate(orders):
            for transaction_id, transaction in transactions:
                date_difference = order.date.difference_ms(transaction.date)
                price_difference = abs(abs(order.amount) - abs(transaction.amount))

                if (
                    date_difference <= self.date_tolerance_ms
                    and price_difference <= self.dollar_tolerance_milliunits
                ):
                    candidates.append(
                        Match(
                            order_index=order_index,
                            transaction_id=transaction_id,
                            date_difference_ms=date_difference,
                            price_difference_milliunits=price_difference,
                        )
                    )

                if date_difference == 0 and price_difference == 0:
                    break

        return candidates

    def match(self, orders: Sequence[Order], cache: TransactionCache) -> list[Match]:
        """
        Match orders to cached transactions, one to one.

        Read-only on the cache; makes no network calls.

        Returns:
            Matches ordered best first
        """
        if not orders:
            logger.warning("⚠️ No orders to match against.")
            return []

        # sorted() is stable, so discovery order breaks exact ties
        remaining = sorted(self.find_candidates(orders, cache), key=Match.sort_key)

        final_matches: list[Match] = []
        claimed_orders: set[int] = set()
        claimed_transactions: set[str] = set()

        for candidate in remaining:
            if candidate.order_index in claimed_orders or candidate.transaction_id in claimed_transactions:
                continue
            final_matches.append(candidate)
            claimed_orders.add(candidate.order_index)
            claimed_transactions.add(candidate.transaction_id)

        logger.info(f"Matched {len(final_matches)} of {len(orders)} order(s)")
        return final_matches
