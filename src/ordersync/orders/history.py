#!/usr/bin/env python3
"""
Order History Buffer

Bounded, insertion-ordered store of the most recently extracted orders.
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator

from .models import Order

logger = logging.getLogger(__name__)


class OrderHistory:
    """
    Most recent orders, oldest first.

    Appending past max_orders evicts the oldest entries.
    """

    def __init__(self, max_orders: int = 1000):
        if max_orders <= 0:
            raise ValueError(f"max_orders must be positive, got {max_orders}")
        self.max_orders = max_orders
        self._orders: deque[Order] = deque(maxlen=max_orders)

    def add(self, order: Order) -> None:
        """Append an order, evicting the oldest one when full."""
        if len(self._orders) == self.max_orders:
            logger.debug(f"Order history full, evicting {self._orders[0]}")
        self._orders.append(order)

    def extend(self, orders: Iterable[Order]) -> int:
        """Append several orders in order; returns how many were added."""
        added = 0
        for order in orders:
            self.add(order)
            added += 1
        return added

    def orders(self) -> list[Order]:
        """Snapshot of the buffer, oldest first."""
        return list(self._orders)

    @property
    def oldest(self) -> Order | None:
        return self._orders[0] if self._orders else None

    def __len__(self) -> int:
        return len(self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(list(self._orders))

    def __bool__(self) -> bool:
        return bool(self._orders)
