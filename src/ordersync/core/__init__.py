"""
Core Utilities Package

Shared primitives used by the order and YNAB packages.

This package provides:
- Currency handling with integer milliunit arithmetic
- The FinancialDate calendar-day primitive
- Configuration management for environment-specific settings
- Exception types shared by every component
"""

from .config import (
    Config,
    Environment,
    get_config,
    is_development,
    is_production,
    is_test,
    reload_config,
)
from .currency import (
    dollars_to_milliunits,
    find_currency_amounts,
    format_milliunits,
    milliunits_to_dollars_str,
    parse_dollars_to_milliunits,
    parse_first_currency_amount,
)
from .dates import MILLISECONDS_PER_DAY, FinancialDate
from .errors import MailboxError, OrderSyncError, StartupError, YnabApiError

__all__ = [
    # Configuration
    "Config",
    "Environment",
    "FinancialDate",
    "MILLISECONDS_PER_DAY",
    # Errors
    "MailboxError",
    "OrderSyncError",
    "StartupError",
    "YnabApiError",
    # Currency utilities
    "dollars_to_milliunits",
    "find_currency_amounts",
    "format_milliunits",
    "get_config",
    "is_development",
    "is_production",
    "is_test",
    "milliunits_to_dollars_str",
    "parse_dollars_to_milliunits",
    "parse_first_currency_amount",
    "reload_config",
]
