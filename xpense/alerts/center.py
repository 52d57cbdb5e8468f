"""
Alert Center

Priority-ordered mailbox for exceptional conditions: low funds, rejected
or rolled-back transactions, and failed durable writes.

Alerts are held in a min-heap keyed on priority (lower = more urgent) and
are consumed when read. Equal priorities come out in heap order, not in
insertion order.

One AlertCenter is owned by the system root. There is no reset other than
draining it.
"""

import threading
from decimal import Decimal
from typing import Any, Optional

import structlog

from xpense.audit import AuditLogger
from xpense.config import get_settings
from xpense.containers import MinHeap
from xpense.models.alert import Alert, AlertPriority
from xpense.models.ledger import to_money


class AlertCenter:
    """
    Priority-ordered alert queue with the ledger's threshold checks.

    Insert and remove-min are serialized so the center can be shared
    between threads.
    """

    def __init__(
        self,
        low_balance_threshold: Optional[Decimal] = None,
        spending_limit_threshold: Optional[Decimal] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            low_balance_threshold: Balance floor for low-funds alerts.
                                   Defaults to the configured value.
            spending_limit_threshold: Single-expenditure amount above which a
                                      spending alert is raised.
            audit_logger: Optional audit trail for raised alerts.
        """
        if low_balance_threshold is None or spending_limit_threshold is None:
            ledger_settings = get_settings().ledger
            if low_balance_threshold is None:
                low_balance_threshold = ledger_settings.low_balance_threshold
            if spending_limit_threshold is None:
                spending_limit_threshold = ledger_settings.spending_limit_threshold

        self.low_balance_threshold = Decimal(low_balance_threshold)
        self.spending_limit_threshold = Decimal(spending_limit_threshold)
        self._heap: MinHeap[Alert] = MinHeap(key=lambda alert: alert.priority)
        self._lock = threading.Lock()
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger("xpense.alerts")

    def add_alert(self, message: str, priority: int = AlertPriority.WARNING) -> None:
        alert = Alert(message=message, priority=int(priority))
        with self._lock:
            self._heap.insert(alert)
        if self._audit_logger:
            self._audit_logger.log_alert_raised(message, int(priority))

    def next_alert(self) -> Optional[str]:
        """Remove and return the most urgent message, or None."""
        alert = self.next_alert_record()
        return alert.message if alert is not None else None

    def next_alert_record(self) -> Optional[Alert]:
        with self._lock:
            return self._heap.remove_min()

    def has_alerts(self) -> bool:
        return not self._heap.is_empty()

    def pending_count(self) -> int:
        return self._heap.size()

    def check_low_funds(self, account_id: str, balance: Any) -> bool:
        """
        Raise a priority-1 alert if balance is below the low-balance threshold.

        Returns True when an alert was queued. Repeated calls with a low
        balance queue repeated alerts.
        """
        value = to_money(balance)
        if value is None or value >= self.low_balance_threshold:
            return False
        self.add_alert(
            f"Account {account_id} is low on funds: {value}",
            AlertPriority.CRITICAL,
        )
        return True

    def check_spending_limit(self, expenditure_id: str, amount: Any) -> bool:
        """Raise a priority-2 alert if one expenditure exceeds the spending limit."""
        value = to_money(amount)
        if value is None or value <= self.spending_limit_threshold:
            return False
        self.add_alert(
            f"Expenditure {expenditure_id} of {value} exceeds the spending limit "
            f"of {self.spending_limit_threshold}",
            AlertPriority.WARNING,
        )
        return True

    def display_all(self) -> list[str]:
        """
        Drain every pending alert in priority order.

        Destructive: the center is empty afterwards. Each drained alert is
        written to the structured log; the messages are returned for the
        caller to present.
        """
        with self._lock:
            drained = self._heap.drain()

        for alert in drained:
            self._logger.warning(
                "alert",
                message=alert.message,
                priority=alert.priority,
            )
        return [alert.message for alert in drained]
