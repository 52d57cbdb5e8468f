"""
Ledger Core

Accounts, categories, expenditures and receipts, each kept by its own
component. Cross-component work (debit, record, index) is coordinated by
xpense.orchestrator.
"""

from xpense.ledger.accounts import Ledger
from xpense.ledger.categories import CategoryRegistry
from xpense.ledger.errors import (
    DuplicateIdError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from xpense.ledger.expenditures import ExpenditureStore
from xpense.ledger.receipts import ReceiptHandler

__all__ = [
    "CategoryRegistry",
    "ExpenditureStore",
    "Ledger",
    "ReceiptHandler",
    # Exceptions
    "DuplicateIdError",
    "InsufficientFundsError",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
]
