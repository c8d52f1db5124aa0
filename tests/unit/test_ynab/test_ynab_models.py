#!/usr/bin/env python3
"""Tests for YNAB domain models."""

import pytest

from ordersync.ynab.models import TransactionUpdate, YnabTransaction


@pytest.mark.ynab
class TestYnabTransaction:
    def test_from_dict(self, sample_ynab_transaction):
        transaction = YnabTransaction.from_dict(sample_ynab_transaction)

        assert transaction.payee_name == "Amazon.com"
        assert transaction.cleared == "cleared"
        assert transaction.memo is None
        assert not transaction.deleted

    def test_str(self, sample_ynab_transaction):
        transaction = YnabTransaction.from_dict(sample_ynab_transaction)
        assert str(transaction) == "Amazon.com transaction on 2024-08-15 of $-45.99"


@pytest.mark.ynab
def test_transaction_update_leaves_transaction_unapproved():
    assert TransactionUpdate("t1", "Tea").to_dict() == {"id": "t1", "memo": "Tea", "approved": False}
