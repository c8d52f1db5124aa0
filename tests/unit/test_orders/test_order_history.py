#!/usr/bin/env python3
"""Tests for the bounded order history."""

import pytest

from ordersync.orders.history import OrderHistory


@pytest.mark.orders
class TestOrderHistory:
    """Test insertion order and eviction."""

    def test_keeps_insertion_order(self, make_order):
        history = OrderHistory(max_orders=10)
        history.add(make_order(source_ref="a"))
        history.add(make_order(source_ref="b"))

        assert [o.source_ref for o in history.orders()] == ["a", "b"]
        assert history.oldest.source_ref == "a"

    def test_evicts_oldest_when_full(self, make_order):
        max_orders = 1000
        history = OrderHistory(max_orders=max_orders)

        added = history.extend(make_order(source_ref=f"msg-{i}") for i in range(max_orders + 5))

        assert added == max_orders + 5
        assert len(history) == max_orders
        assert history.oldest.source_ref == "msg-5"
        assert history.orders()[-1].source_ref == f"msg-{max_orders + 4}"

    def test_snapshot_is_independent(self, make_order):
        history = OrderHistory(max_orders=3)
        history.add(make_order())

        snapshot = history.orders()
        history.add(make_order(source_ref="later"))

        assert len(snapshot) == 1

    def test_empty(self):
        history = OrderHistory()

        assert not history
        assert history.oldest is None
        assert history.orders() == []

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            OrderHistory(max_orders=0)
