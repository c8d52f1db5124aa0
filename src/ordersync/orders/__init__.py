"""
Orders Package

Everything on the email side of reconciliation.

This package provides:
- Mailbox access over IMAP
- Order email classification and HTML extraction
- A bounded history of recently seen orders
- Order to transaction matching
"""

from .history import OrderHistory
from .mailbox import MailboxClient, MailboxConfig
from .matcher import Match, OrderMatcher
from .models import Order, OrderEmail
from .parser import OrderEmailParser

__all__ = [
    "MailboxClient",
    "MailboxConfig",
    "Match",
    "Order",
    "OrderEmail",
    "OrderEmailParser",
    "OrderHistory",
    "OrderMatcher",
]
