"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import pytest

from ordersync.core import config as config_module
from ordersync.core.dates import FinancialDate
from ordersync.orders.models import Order
from ordersync.ynab.models import YnabTransaction


@pytest.fixture
def make_order():
    """Factory for Order records."""

    def _make(date="2024-03-01", amount=-52300, items=("USB-C Cable, 6ft",), source_ref="msg-1"):
        return Order(
            date=FinancialDate.from_string(date),
            amount=amount,
            items=tuple(items),
            source_ref=source_ref,
        )

    return _make


@pytest.fixture
def make_transaction():
    """Factory for YNAB transactions from an Amazon payee."""

    def _make(id="txn-1", date="2024-03-02", amount=-52300, memo=None, payee_name="Amazon.com", deleted=False):
        return YnabTransaction(
            id=id,
            date=FinancialDate.from_string(date),
            amount=amount,
            memo=memo,
            payee_name=payee_name,
            account_name="Chase Credit Card",
            deleted=deleted,
        )

    return _make


@pytest.fixture
def sample_ynab_transaction():
    """Sample YNAB transaction as returned by the API."""
    return {
        "id": "test-transaction-123",
        "date": "2024-08-15",
        "amount": -45990,  # -$45.99 in milliunits
        "memo": None,
        "payee_name": "Amazon.com",
        "account_name": "Chase Credit Card",
        "cleared": "cleared",
        "approved": True,
        "deleted": False,
    }



@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ORDERSYNC_ENV", "test")

    # Mock sensitive environment variables
    monkeypatch.setenv("YNAB_API_TOKEN", "test-token")
    monkeypatch.setenv("YNAB_BUDGET_ID", "test-budget")
    monkeypatch.setenv("EMAIL_USERNAME", "test@example.com")
    monkeypatch.setenv("EMAIL_PASSWORD", "test-password")

    # Every test starts from a fresh global config
    monkeypatch.setattr(config_module, "_config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "orders: Tests for order email extraction and matching")
    config.addinivalue_line("markers", "ynab: Tests for YNAB integration")
