"""
Data Models Package

All pydantic models used in the Xpense ledger.
"""

from xpense.models.alert import Alert, AlertPriority
from xpense.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from xpense.models.ledger import (
    DEFAULT_PHASE,
    Account,
    Category,
    Expenditure,
    Receipt,
    normalize_name,
    to_money,
)
from xpense.models.transaction import (
    ALLOWED_TRANSITIONS,
    TransactionResult,
    TransactionState,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Ledger models
    "DEFAULT_PHASE",
    "Account",
    "Category",
    "Expenditure",
    "Receipt",
    "normalize_name",
    "to_money",
    # Alerts
    "Alert",
    "AlertPriority",
    # Transactions and validation
    "ALLOWED_TRANSITIONS",
    "TransactionResult",
    "TransactionState",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
