"""
Audit Logger

Every significant ledger action is logged. This provides:
1. Complete traceability of every transaction step
2. Debugging capability
3. An operator-visible record of persistence failures

The audit logger:
- Is synchronous (the ledger core has no async surface)
- Never raises into the caller: a failing log call cannot break a transaction
- Groups the events of one transaction under a correlation id
"""

from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

import structlog

from xpense.containers import DynamicSequence
from xpense.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and, when `keep_history` is
    set, keeps them in memory for inspection.
    """

    def __init__(self, keep_history: bool = False):
        """
        Initialize audit logger.

        Args:
            keep_history: Retain every logged event in memory.
        """
        self._keep_history = keep_history
        self._history: DynamicSequence[AuditEvent] = DynamicSequence()
        self._logger = structlog.get_logger("xpense.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event. Never raises."""
        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must not take a transaction down with it
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

        if self._keep_history:
            self._history.append(event)

    def _build_and_log(self, build: Callable[..., AuditEvent], *args: Any, **kwargs: Any) -> None:
        """Build an event and log it. A builder failure is logged, never raised."""
        try:
            event = build(*args, **kwargs)
        except Exception as e:
            self._logger.error(
                "audit_event_build_failed",
                builder=getattr(build, "__name__", repr(build)),
                error=str(e),
            )
            return
        self.log(event)

    @property
    def history(self) -> list[AuditEvent]:
        return self._history.to_list()

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        """All retained events of one transaction, in order."""
        return [e for e in self._history if e.correlation_id == correlation_id]

    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        return [
            e for e in self._history
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def log_entity_registered(self, entity_type: str, entity_id: str) -> None:
        self._build_and_log(AuditEventBuilder.entity_registered, entity_type, entity_id)

    def log_entity_rejected(
        self,
        entity_type: str,
        entity_id: Optional[str],
        reason: str,
    ) -> None:
        self._build_and_log(AuditEventBuilder.entity_rejected, entity_type, entity_id, reason)

    def log_transaction_rejected(
        self,
        account_id: Optional[str],
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.transaction_rejected,
            account_id=account_id,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    def log_account_debited(
        self,
        account_id: str,
        amount: Decimal,
        balance: Decimal,
        correlation_id: UUID,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.account_debited,
            account_id=account_id,
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        )

    def log_expenditure_recorded(
        self,
        expenditure_id: str,
        category_name: str,
        amount: Decimal,
        correlation_id: UUID,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.expenditure_recorded,
            expenditure_id=expenditure_id,
            category_name=category_name,
            amount=amount,
            correlation_id=correlation_id,
        )

    def log_rolled_back(
        self,
        account_id: str,
        amount: Decimal,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.transaction_rolled_back,
            account_id=account_id,
            amount=amount,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    def log_committed(
        self,
        expenditure_id: str,
        account_id: str,
        persisted: bool,
        correlation_id: UUID,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.transaction_committed,
            expenditure_id=expenditure_id,
            account_id=account_id,
            persisted=persisted,
            correlation_id=correlation_id,
        )

    def log_data_loaded(self, counts: dict[str, int]) -> None:
        self._build_and_log(AuditEventBuilder.data_loaded, counts)

    def log_data_saved(self, entity_kind: str, record_count: int) -> None:
        self._build_and_log(AuditEventBuilder.data_saved, entity_kind, record_count)

    def log_save_failed(
        self,
        entity_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._build_and_log(AuditEventBuilder.save_failed, entity_kind, error_message, correlation_id)

    def log_alert_raised(self, message: str, priority: int) -> None:
        self._build_and_log(AuditEventBuilder.alert_raised, message, priority)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._build_and_log(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One is created per add-expenditure transaction and passed through
    all of its steps.
    """
    return uuid4()
