"""
Main Orchestrator for Xpense

This module ties the ledger components together and defines the
end-to-end flows for:
1. Add Expenditure (validate → debit → record → index → persist)
2. Registration of accounts, categories and receipts
3. Loading and saving the whole ledger

The orchestrator enforces the boundaries:
- An account is only ever debited for an expenditure that ends up recorded;
  a failed record reverses the debit
- No ledger exception reaches the caller: failures become a
  TransactionResult (or False) plus an alert plus an audit event
- A failed durable write never undoes an in-memory commit
"""

import threading
from contextlib import nullcontext
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence
from uuid import UUID

import structlog
from pydantic import BaseModel

from xpense.alerts import AlertCenter
from xpense.audit import AuditLogger, create_correlation_id
from xpense.ledger import (
    CategoryRegistry,
    ExpenditureStore,
    InsufficientFundsError,
    Ledger,
    LedgerError,
    NotFoundError,
    ReceiptHandler,
    ValidationError,
)
from xpense.models.alert import AlertPriority
from xpense.models.ledger import (
    DEFAULT_PHASE,
    Account,
    Category,
    Expenditure,
    Receipt,
    to_money,
)
from xpense.models.transaction import (
    ALLOWED_TRANSITIONS,
    TransactionResult,
    TransactionState,
)
from xpense.services.storage import (
    EntityKind,
    FlatFileStorage,
    LedgerStorageInterface,
)


def _rejection_priority(error: LedgerError) -> AlertPriority:
    """Missing accounts and overdrafts are critical; the rest are warnings."""
    if isinstance(error, InsufficientFundsError):
        return AlertPriority.CRITICAL
    if isinstance(error, NotFoundError) and error.entity_type == "account":
        return AlertPriority.CRITICAL
    return AlertPriority.WARNING


class _TransactionRun:
    """Tracks the state of one add-expenditure run and refuses illegal moves."""

    def __init__(self, account_id: Optional[str], correlation_id: UUID):
        self.account_id = account_id
        self.correlation_id = correlation_id
        self.state = TransactionState.VALIDATING
        self.debited: Optional[Decimal] = None
        self.account: Optional[Account] = None
        self.expenditure: Optional[Expenditure] = None

    def advance(self, new_state: TransactionState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transaction transition {self.state.value} -> {new_state.value}")
        self.state = new_state

    def result(self, **kwargs: Any) -> TransactionResult:
        return TransactionResult(
            transaction_id=self.correlation_id,
            success=self.state == TransactionState.COMMITTED,
            state=self.state,
            account_id=self.account_id,
            **kwargs,
        )


class TransactionCoordinator:
    """
    Runs the add-expenditure transaction across the ledger components.

    Flow:
    1. Resolve account → "account not found" (priority 1)
    2. Resolve category → "category not found" (priority 2)
    3. Check amount, debit → "invalid amount" (2) / insufficient funds (1)
    4. Record → on failure reverse the debit, "expenditure not added" (2)
    5. Index, spending-limit check, persist

    The whole sequence holds a lock per account id, so two transactions on
    one account never interleave. Different accounts proceed in parallel;
    only their writes to storage are serialized.
    """

    def __init__(
        self,
        ledger: Ledger,
        categories: CategoryRegistry,
        expenditures: ExpenditureStore,
        alert_center: AlertCenter,
        storage: Optional[LedgerStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._categories = categories
        self._expenditures = expenditures
        self._alert_center = alert_center
        self._storage = storage
        self._audit_logger = audit_logger

        self._account_locks: dict[str, threading.Lock] = {}
        self._account_locks_guard = threading.Lock()
        self._persist_lock = threading.Lock()
        self._logger = structlog.get_logger("xpense.orchestrator")

    def _lock_for(self, account: Account) -> threading.Lock:
        # keyed by registered id only, so the map is bounded by the ledger
        with self._account_locks_guard:
            lock = self._account_locks.get(account.id)
            if lock is None:
                lock = self._account_locks[account.id] = threading.Lock()
            return lock

    def lock_count(self) -> int:
        with self._account_locks_guard:
            return len(self._account_locks)

    # -------------------------------------------------------------------------
    # Add expenditure
    # -------------------------------------------------------------------------

    def add_expenditure(
        self,
        account_id: Optional[str],
        category_name: Optional[str],
        amount: Any,
        description: str,
        timestamp: Optional[datetime] = None,
        expenditure_id: Optional[str] = None,
        phase: str = DEFAULT_PHASE,
        receipt_info: Optional[str] = None,
    ) -> TransactionResult:
        """
        Debit the account and record the expenditure, or neither.

        Never raises. The returned result is truthy only when committed;
        `persisted` tells whether the durable write succeeded as well.
        """
        run = _TransactionRun(account_id, create_correlation_id())
        try:
            run.account = self._ledger.get_account(account_id)
        except Exception as e:
            return self._fail_unexpectedly(run, e)

        # accounts are never unregistered, so an unknown id needs no lock
        lock = self._lock_for(run.account) if run.account is not None else nullcontext()
        with lock:
            try:
                return self._run(
                    run,
                    category_name=category_name,
                    amount=amount,
                    description=description,
                    timestamp=timestamp,
                    expenditure_id=expenditure_id,
                    phase=phase,
                    receipt_info=receipt_info,
                )
            except LedgerError as e:
                return self._reject(run, e)
            except Exception as e:
                return self._fail_unexpectedly(run, e)

    def _run(
        self,
        run: _TransactionRun,
        category_name: Optional[str],
        amount: Any,
        description: str,
        timestamp: Optional[datetime],
        expenditure_id: Optional[str],
        phase: str,
        receipt_info: Optional[str],
    ) -> TransactionResult:
        account = run.account
        if account is None:
            raise NotFoundError("account", run.account_id)

        category = self._categories.get_category(category_name)
        if category is None:
            raise NotFoundError("category", category_name)

        value = to_money(amount)
        if value is None or value <= 0:
            raise ValidationError(f"Invalid amount for expenditure: {amount}")

        if not self._ledger.log_expenditure(account.id, value):
            raise InsufficientFundsError(account.id, value, account.balance)
        run.debited = value
        run.advance(TransactionState.DEBITED)
        if self._audit_logger:
            self._audit_logger.log_account_debited(
                account_id=account.id,
                amount=value,
                balance=account.balance,
                correlation_id=run.correlation_id,
            )

        try:
            expenditure = self._expenditures.record(Expenditure(
                id=expenditure_id,
                description=description,
                amount=value,
                category=category,
                timestamp=timestamp or datetime.now(),
                phase=phase,
                account_id=account.id,
                receipt_info=receipt_info,
            ))
        except (LedgerError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            return self._roll_back(run, e)
        run.expenditure = expenditure

        if self._audit_logger:
            self._audit_logger.log_expenditure_recorded(
                expenditure_id=expenditure.id,
                category_name=category.name,
                amount=value,
                correlation_id=run.correlation_id,
            )

        self._categories.add_expenditure_to_category(category.name, expenditure)
        account.add_expenditure(expenditure)
        self._alert_center.check_spending_limit(expenditure.id, value)
        run.advance(TransactionState.COMMITTED)

        persisted = self.persist_transaction(run.correlation_id)
        if self._audit_logger:
            self._audit_logger.log_committed(
                expenditure_id=expenditure.id,
                account_id=account.id,
                persisted=persisted,
                correlation_id=run.correlation_id,
            )

        return run.result(expenditure_id=expenditure.id, persisted=persisted)

    def _reject(self, run: _TransactionRun, error: LedgerError) -> TransactionResult:
        run.advance(TransactionState.REJECTED)
        self._alert_center.add_alert(str(error), _rejection_priority(error))
        if self._audit_logger:
            self._audit_logger.log_transaction_rejected(
                account_id=run.account_id,
                error_type=type(error).__name__,
                error_message=str(error),
                correlation_id=run.correlation_id,
            )
        return run.result(error_type=type(error).__name__, error_message=str(error))

    def _roll_back(self, run: _TransactionRun, error: Exception) -> TransactionResult:
        """Reverse the debit. The credit does not re-run the low-funds check."""
        run.account.credit(run.debited)
        run.advance(TransactionState.ROLLED_BACK)

        message = f"Expenditure not added: {error}"
        self._alert_center.add_alert(message, AlertPriority.WARNING)
        if self._audit_logger:
            self._audit_logger.log_rolled_back(
                account_id=run.account.id,
                amount=run.debited,
                error_type=type(error).__name__,
                error_message=str(error),
                correlation_id=run.correlation_id,
            )
        return run.result(error_type=type(error).__name__, error_message=message)

    def _fail_unexpectedly(self, run: _TransactionRun, error: Exception) -> TransactionResult:
        self._logger.exception("transaction_failed", account_id=run.account_id, error=str(error))
        if self._audit_logger:
            self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"state": run.state.value},
                correlation_id=run.correlation_id,
            )
        if run.state == TransactionState.DEBITED:
            if run.expenditure is not None:
                self._expenditures.remove_expenditure(run.expenditure.id)
            return self._roll_back(run, error)
        if run.state == TransactionState.VALIDATING:
            run.advance(TransactionState.REJECTED)
            self._alert_center.add_alert(f"Expenditure failed: {error}", AlertPriority.CRITICAL)
        return run.result(error_type=type(error).__name__, error_message=str(error))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def persist_transaction(self, correlation_id: Optional[UUID] = None) -> bool:
        """Write the expenditure list and the account list."""
        saved_expenditures = self.persist(
            EntityKind.EXPENDITURES,
            self._expenditures.get_all_expenditures(),
            correlation_id,
        )
        saved_accounts = self.persist(
            EntityKind.ACCOUNTS,
            self._ledger.get_all_accounts(),
            correlation_id,
        )
        return saved_expenditures and saved_accounts

    def persist(
        self,
        kind: EntityKind,
        records: Sequence[BaseModel],
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Save one entity list. A failure becomes a priority-1 alert.

        Returns False without an alert when no storage is configured.
        """
        if self._storage is None:
            return False

        error_message: Optional[str] = None
        with self._persist_lock:
            try:
                if not self._storage.save(kind, records):
                    error_message = "storage reported the write as unsuccessful"
            except Exception as e:
                # backends are external; anything they raise is a failed write
                error_message = str(e) or type(e).__name__

        if error_message is None:
            if self._audit_logger:
                self._audit_logger.log_data_saved(kind.value, len(records))
            return True

        self._alert_center.add_alert(
            f"Failed to save {kind.value}: {error_message}",
            AlertPriority.CRITICAL,
        )
        if self._audit_logger:
            self._audit_logger.log_save_failed(kind.value, error_message, correlation_id)
        return False


class LedgerSystem:
    """
    The system root. Owns every ledger component and the storage backend.

    Callers use this object only:
        system = create_ledger_system()
        system.add_account(Account(id="A001", balance=Decimal("100.00")))
        system.add_category(Category(name="Food", description="Meals", color="green"))
        result = system.add_expenditure("A001", "food", Decimal("30.00"), "Lunch")
        for message in system.alerts.display_all():
            print(message)
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        alert_center: Optional[AlertCenter] = None,
        audit_logger: Optional[AuditLogger] = None,
        expenditure_store: Optional[ExpenditureStore] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self.alerts = alert_center or AlertCenter(audit_logger=audit_logger)
        self.ledger = Ledger(alert_center=self.alerts)
        self.categories = CategoryRegistry()
        self.expenditures = expenditure_store or ExpenditureStore()
        self.receipts = ReceiptHandler()
        self.coordinator = TransactionCoordinator(
            ledger=self.ledger,
            categories=self.categories,
            expenditures=self.expenditures,
            alert_center=self.alerts,
            storage=storage,
            audit_logger=audit_logger,
        )
        self._logger = structlog.get_logger("xpense.system")

    @property
    def storage(self) -> Optional[LedgerStorageInterface]:
        return self._storage

    # -------------------------------------------------------------------------
    # Loading and saving
    # -------------------------------------------------------------------------

    def _load_kind(self, kind: EntityKind) -> list:
        try:
            return self._storage.load(kind)
        except Exception as e:
            self.alerts.add_alert(f"Failed to load {kind.value}: {e}", AlertPriority.CRITICAL)
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"kind": kind.value},
                )
            return []

    def load_all(self) -> dict[str, int]:
        """
        Load categories, accounts, expenditures and receipts, in that order.

        Loaded expenditures are attached to the registered category instance
        and indexed under their category and account only when both exist.
        Loading never debits an account. Returns the count loaded per kind.
        """
        counts = {kind.value: 0 for kind in EntityKind}
        if self._storage is None:
            return counts

        for category in self._load_kind(EntityKind.CATEGORIES):
            if self.categories.add_category(category):
                counts[EntityKind.CATEGORIES.value] += 1

        for account in self._load_kind(EntityKind.ACCOUNTS):
            if self.ledger.add_account(account):
                counts[EntityKind.ACCOUNTS.value] += 1

        records = self._load_kind(EntityKind.EXPENDITURES)
        for expenditure in records:
            registered = self.categories.get_category(expenditure.category_name)
            if registered is not None:
                expenditure.category = registered
        counts[EntityKind.EXPENDITURES.value] = self.expenditures.load_expenditures(records)

        for expenditure in records:
            if self.expenditures.get_expenditure(expenditure.id) is not expenditure:
                continue
            account = self.ledger.get_account(expenditure.account_id)
            if account is None or not self.categories.validate_category(expenditure.category_name):
                continue
            self.categories.add_expenditure_to_category(expenditure.category_name, expenditure)
            account.add_expenditure(expenditure)

        for receipt in self._load_kind(EntityKind.RECEIPTS):
            if self.receipts.add_receipt(receipt):
                counts[EntityKind.RECEIPTS.value] += 1

        if self._audit_logger:
            self._audit_logger.log_data_loaded(counts)
        self._logger.info("ledger_loaded", **counts)
        return counts

    def save_all(self) -> bool:
        """Write every entity list. True only if all four writes succeeded."""
        lists = {
            EntityKind.CATEGORIES: self.categories.get_all_categories(),
            EntityKind.ACCOUNTS: self.ledger.get_all_accounts(),
            EntityKind.EXPENDITURES: self.expenditures.get_all_expenditures(),
            EntityKind.RECEIPTS: self.receipts.get_all_receipts(),
        }
        results = [self.coordinator.persist(kind, records) for kind, records in lists.items()]
        return all(results)

    # -------------------------------------------------------------------------
    # Caller-facing operations
    # -------------------------------------------------------------------------

    def add_expenditure(
        self,
        account_id: Optional[str],
        category_name: Optional[str],
        amount: Any,
        description: str,
        timestamp: Optional[datetime] = None,
        expenditure_id: Optional[str] = None,
        phase: str = DEFAULT_PHASE,
        receipt_info: Optional[str] = None,
    ) -> TransactionResult:
        return self.coordinator.add_expenditure(
            account_id=account_id,
            category_name=category_name,
            amount=amount,
            description=description,
            timestamp=timestamp,
            expenditure_id=expenditure_id,
            phase=phase,
            receipt_info=receipt_info,
        )

    def add_account(self, account: Optional[Account]) -> bool:
        try:
            self.ledger.register(account)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_entity_rejected("account", getattr(account, "id", None), str(e))
            return False

        if self._audit_logger:
            self._audit_logger.log_entity_registered("account", account.id)
        self.coordinator.persist(EntityKind.ACCOUNTS, self.ledger.get_all_accounts())
        return True

    def add_category(self, category: Optional[Category]) -> bool:
        try:
            self.categories.register(category)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_entity_rejected("category", getattr(category, "name", None), str(e))
            return False

        if self._audit_logger:
            self._audit_logger.log_entity_registered("category", category.id)
        self.coordinator.persist(EntityKind.CATEGORIES, self.categories.get_all_categories())
        return True

    def add_receipt(self, receipt: Optional[Receipt]) -> bool:
        if not self.receipts.add_receipt(receipt):
            return False

        if self._audit_logger:
            self._audit_logger.log_entity_registered("receipt", receipt.id)
        self.coordinator.persist(EntityKind.RECEIPTS, self.receipts.get_all_receipts())
        return True

    def get_all_accounts(self) -> list[Account]:
        return self.ledger.get_all_accounts()

    def get_all_categories(self) -> list[Category]:
        return self.categories.get_all_categories()

    def get_all_expenditures(self) -> list[Expenditure]:
        return self.expenditures.get_all_expenditures()


def create_ledger_system(
    storage: Optional[LedgerStorageInterface] = None,
    load: bool = True,
) -> LedgerSystem:
    """
    Factory function to create a fully wired ledger.

    Args:
        storage: Persistence backend. Defaults to flat files under the
                 configured data directory.
        load: Read the stored data before returning.

    Returns:
        The system root
    """
    system = LedgerSystem(
        storage=storage or FlatFileStorage(),
        audit_logger=AuditLogger(),
    )
    if load:
        system.load_all()
    return system
