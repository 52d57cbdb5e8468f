"""Domain-specific exceptions for the ledger core.

These are raised inside the core and recovered by the transaction
coordinator; none of them crosses the public API.
"""

from typing import Optional

from xpense.models.transaction import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError, ValueError):
    """A record has a malformed or missing field."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(LedgerError, LookupError):
    """An account or category reference does not resolve."""

    def __init__(self, entity_type: str, entity_id: Optional[str]):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InsufficientFundsError(LedgerError):
    """A debit exceeds the account balance."""

    def __init__(self, account_id: str, requested, available):
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"requested {requested}, available {available}"
        )
        self.account_id = account_id
        self.requested = requested
        self.available = available


class DuplicateIdError(LedgerError):
    """An expenditure id is already taken (case-insensitive)."""

    def __init__(self, entity_id: str):
        super().__init__(f"Duplicate expenditure id: {entity_id}")
        self.entity_id = entity_id
