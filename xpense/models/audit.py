"""
Audit Models for Xpense

Every significant ledger action is logged for audit purposes:
registrations, every step of an expenditure transaction, persistence
failures and raised alerts.

Audit events are append-only records. They are never modified.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Registration
    ACCOUNT_REGISTERED = "account_registered"
    ACCOUNT_REJECTED = "account_rejected"
    CATEGORY_REGISTERED = "category_registered"
    CATEGORY_REJECTED = "category_rejected"
    RECEIPT_REGISTERED = "receipt_registered"

    # Expenditure transaction
    TRANSACTION_REJECTED = "transaction_rejected"
    ACCOUNT_DEBITED = "account_debited"
    EXPENDITURE_RECORDED = "expenditure_recorded"
    TRANSACTION_ROLLED_BACK = "transaction_rolled_back"
    TRANSACTION_COMMITTED = "transaction_committed"

    # Persistence
    DATA_LOADED = "data_loaded"
    DATA_SAVED = "data_saved"
    SAVE_FAILED = "save_failed"

    # Alerts
    ALERT_RAISED = "alert_raised"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'expenditure', 'category')"
    )
    entity_id: Optional[str] = None

    # Correlation - all events of one transaction share it
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator('description', mode='before')
    @classmethod
    def truncate_description(cls, v):
        # builders interpolate caller-supplied text
        if isinstance(v, str):
            return v[:500]
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_debited(account_id, amount, balance, tx_id)
        event = AuditEventBuilder.transaction_committed(exp_id, account_id, tx_id)
    """

    @staticmethod
    def entity_registered(
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        event_type = {
            "account": AuditEventType.ACCOUNT_REGISTERED,
            "category": AuditEventType.CATEGORY_REGISTERED,
            "receipt": AuditEventType.RECEIPT_REGISTERED,
        }[entity_type]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} registered: {entity_id}",
        )

    @staticmethod
    def entity_rejected(
        entity_type: str,
        entity_id: Optional[str],
        reason: str,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.ACCOUNT_REJECTED
            if entity_type == "account"
            else AuditEventType.CATEGORY_REJECTED
        )
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} rejected: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def transaction_rejected(
        account_id: Optional[str],
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Expenditure rejected: {error_message}",
            error_type=error_type,
            error_message=error_message,
        )

    @staticmethod
    def account_debited(
        account_id: str,
        amount: Decimal,
        balance: Decimal,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DEBITED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account {account_id} debited {amount}",
            details={
                "amount": str(amount),
                "balance_after": str(balance),
            },
        )

    @staticmethod
    def expenditure_recorded(
        expenditure_id: str,
        category_name: str,
        amount: Decimal,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENDITURE_RECORDED,
            entity_type="expenditure",
            entity_id=expenditure_id,
            correlation_id=correlation_id,
            description=f"Expenditure {expenditure_id} recorded under {category_name}",
            details={
                "category": category_name,
                "amount": str(amount),
            },
        )

    @staticmethod
    def transaction_rolled_back(
        account_id: str,
        amount: Decimal,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ROLLED_BACK,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Debit of {amount} on account {account_id} reversed",
            details={"amount": str(amount)},
            error_type=error_type,
            error_message=error_message,
        )

    @staticmethod
    def transaction_committed(
        expenditure_id: str,
        account_id: str,
        persisted: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_COMMITTED,
            entity_type="expenditure",
            entity_id=expenditure_id,
            correlation_id=correlation_id,
            description=f"Expenditure {expenditure_id} committed against account {account_id}",
            details={"persisted": persisted},
        )

    @staticmethod
    def data_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Ledger data loaded from storage",
            details=dict(counts),
        )

    @staticmethod
    def data_saved(entity_kind: str, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type=entity_kind,
            description=f"Saved {record_count} {entity_kind} records",
            details={"record_count": record_count},
        )

    @staticmethod
    def save_failed(
        entity_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_kind,
            correlation_id=correlation_id,
            description=f"Failed to persist {entity_kind}",
            error_type="PersistenceError",
            error_message=error_message,
        )

    @staticmethod
    def alert_raised(message: str, priority: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_RAISED,
            severity=AuditSeverity.WARNING if priority <= 1 else AuditSeverity.INFO,
            entity_type="alert",
            description=message[:500],
            details={"priority": priority},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
