"""
YNAB Integration Package

API client, transaction cache and memo annotation for YNAB.
"""

from .annotator import TransactionAnnotator
from .cache import TransactionCache
from .client import YnabClient
from .models import TransactionDelta, TransactionUpdate, YnabBudget, YnabTransaction

__all__ = [
    "TransactionAnnotator",
    "TransactionCache",
    "TransactionDelta",
    "TransactionUpdate",
    "YnabBudget",
    "YnabClient",
    "YnabTransaction",
]
