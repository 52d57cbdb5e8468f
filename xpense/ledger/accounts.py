"""
Ledger

The keyed collection of bank accounts. Account ids are matched exactly
(after surrounding whitespace is stripped) and kept in registration order.
"""

import threading
from decimal import Decimal
from typing import Any, Optional

import structlog

from xpense.alerts import AlertCenter
from xpense.containers import AssociationMap
from xpense.ledger.errors import ValidationError
from xpense.models.ledger import Account, to_money
from xpense.validation import AccountValidator


def _account_key(account_id: Optional[str]) -> str:
    return (account_id or "").strip()


class Ledger:
    """
    Account records and balance mutation, keyed by account id.

    Debits made through log_expenditure() report the post-debit balance to
    the AlertCenter so low balances are flagged as soon as they happen.
    """

    def __init__(
        self,
        alert_center: Optional[AlertCenter] = None,
        validator: Optional[AccountValidator] = None,
    ):
        self._accounts: AssociationMap[str, Account] = AssociationMap(key_func=_account_key)
        self._alert_center = alert_center
        self._validator = validator or AccountValidator()
        self._lock = threading.RLock()
        self._logger = structlog.get_logger("xpense.ledger")

    def register(self, account: Optional[Account]) -> Account:
        """
        Add an account, raising ValidationError when it can't be added.

        Fails when the account is missing, has no id, or its id is taken.
        """
        result = self._validator.validate(account)
        if not result.is_valid:
            raise ValidationError(result.summary(), result.issues)

        with self._lock:
            if self._accounts.contains_key(account.id):
                raise ValidationError(f"Account already exists: {account.id}")
            self._accounts.put(account.id, account)

        self._logger.debug("account_added", account_id=account.id, balance=str(account.balance))
        return account

    def add_account(self, account: Optional[Account]) -> bool:
        try:
            self.register(account)
        except ValidationError:
            return False
        return True

    def get_account(self, account_id: Optional[str]) -> Optional[Account]:
        if account_id is None:
            return None
        return self._accounts.get(account_id)

    def has_account(self, account_id: Optional[str]) -> bool:
        return self.get_account(account_id) is not None

    def get_all_accounts(self) -> list[Account]:
        """Accounts in registration order (a copy)."""
        return self._accounts.values()

    def size(self) -> int:
        return self._accounts.size()

    def log_expenditure(self, account_id: str, amount: Any) -> bool:
        """
        Debit amount from the account for an expenditure.

        On success the post-debit balance is checked against the low-balance
        threshold. Returns the debit result; an unknown account or a
        non-positive amount returns False.
        """
        account = self.get_account(account_id)
        value = to_money(amount)
        if account is None or value is None or value <= 0:
            return False

        with self._lock:
            debited = account.debit(value)
            balance: Decimal = account.balance

        if debited and self._alert_center is not None:
            self._alert_center.check_low_funds(account.id, balance)
        return debited
