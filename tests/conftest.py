"""Shared fixtures. Thresholds and id formats are passed explicitly so the
tests do not depend on XPENSE_* environment variables."""

from decimal import Decimal

import pytest

from xpense.alerts import AlertCenter
from xpense.audit import AuditLogger
from xpense.ledger import ExpenditureStore
from xpense.models.ledger import Account, Category
from xpense.orchestrator import LedgerSystem
from xpense.services.storage import InMemoryStorage


@pytest.fixture
def alert_center():
    return AlertCenter(
        low_balance_threshold=Decimal("100.00"),
        spending_limit_threshold=Decimal("1000.00"),
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger(keep_history=True)


@pytest.fixture
def system(storage, alert_center, audit_logger):
    return LedgerSystem(
        storage=storage,
        alert_center=alert_center,
        audit_logger=audit_logger,
        expenditure_store=ExpenditureStore(id_prefix="EXP", id_width=4),
    )


@pytest.fixture
def funded_system(system):
    """Account A001 holding 100.00 and a 'Food' category; no pending alerts."""
    system.add_account(Account(id="A001", name="Checking", balance=Decimal("100.00")))
    system.add_category(Category(name="Food", description="Meals and groceries", color="green"))
    system.alerts.display_all()
    return system
