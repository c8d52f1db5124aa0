"""
ordersync - Amazon Order to YNAB Memo Reconciliation

Watches a mailbox for Amazon order confirmation emails, extracts the order
total and item titles, matches each order to the Amazon transaction it
produced in YNAB, and writes the item list into that transaction's memo.

Domain Packages:
- core: Currency handling, dates, configuration, errors
- orders: Order email parsing, order history and matching
- ynab: YNAB API client, transaction cache and memo annotation
- cli: Command-line interface

Example Usage:
    from ordersync.orders import OrderEmailParser, OrderMatcher
    from ordersync.ynab import TransactionCache, TransactionAnnotator
    from ordersync.core.currency import parse_dollars_to_milliunits
"""

__version__ = "0.1.0"
__author__ = "Karl Davis"

from .core.config import Environment, get_config
from .core.currency import format_milliunits, milliunits_to_dollars_str, parse_dollars_to_milliunits
from .core.dates import FinancialDate
from .orders.models import Order

__all__ = [
    # Core currency functions
    "parse_dollars_to_milliunits",
    "milliunits_to_dollars_str",
    "format_milliunits",
    # Core models
    "FinancialDate",
    "Order",
    # Configuration
    "get_config",
    "Environment",
]
