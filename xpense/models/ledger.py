"""
Core Ledger Models for Xpense

These models define the records flowing through the ledger:
accounts, categories, expenditures and receipts.

Money is always Decimal. Floats are rejected at the model boundary:
recorded expenditures must add up exactly to the money debited from
their account.

Models enforce TYPES. Business rules (non-blank names, positive amounts,
uniqueness) are enforced by the validators and registries, which report
them as ValidationIssues instead of raising at construction time.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_PHASE = "active"


def to_money(value: Any) -> Optional[Decimal]:
    """
    Coerce value to a Decimal amount.

    Accepts Decimal, int and numeric strings. Returns None for anything
    else, floats and non-finite values included.
    """
    if isinstance(value, bool) or value is None or isinstance(value, float):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    return None


def normalize_name(name: Optional[str]) -> str:
    """Identity key for case-insensitive names and ids."""
    return (name or "").strip().casefold()


def _reject_float(value: Any) -> Any:
    if isinstance(value, float):
        raise ValueError("Monetary amounts must be Decimal, int or str, not float")
    return value


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A named classification bucket for expenditures.

    The name is the identity of a category. Lookups compare `name_key`
    (stripped, case-folded name) instead of relying on model equality,
    which stays structural.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default="",
        max_length=50,
        description="Category id (generated as CAT#### when blank)"
    )
    name: str = Field(
        ...,
        max_length=100,
        description="Category name, unique case-insensitively"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    color: str = Field(
        default="",
        max_length=30,
        description="Color tag, e.g. 'blue' or '#FF0000'"
    )

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)


# =============================================================================
# EXPENDITURE
# =============================================================================

class Expenditure(BaseModel):
    """
    A single recorded expense tied to one account and one category.

    `id` may be None until the expenditure store assigns a generated one.
    Once committed an expenditure is not modified.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Expenditure id, unique case-insensitively"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    amount: Decimal = Field(
        ...,
        description="Amount spent (must be positive to be recorded)"
    )
    category: Optional[Category] = None
    timestamp: Optional[datetime] = None
    phase: str = Field(
        default=DEFAULT_PHASE,
        max_length=100,
        description="Project phase or location tag"
    )
    account_id: Optional[str] = Field(
        default=None,
        max_length=50,
    )
    receipt_info: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Reference to a receipt, if one was filed"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def reject_float_amount(cls, v: Any) -> Any:
        return _reject_float(v)

    @field_validator('receipt_info')
    @classmethod
    def blank_receipt_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def id_key(self) -> str:
        return normalize_name(self.id)

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A bank account holding a monetary balance.

    The balance is only mutated through debit() and credit(), both of which
    refuse (return False, no mutation) rather than raise on bad input.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        max_length=50,
        description="Account number, unique and immutable"
    )
    name: str = Field(
        default="",
        max_length=200,
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Current balance"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the account was created in the system"
    )
    expenditures: list[Expenditure] = Field(
        default_factory=list,
        exclude=True,
        repr=False,
        description="Expenditures committed against this account"
    )

    @field_validator('balance', mode='before')
    @classmethod
    def reject_float_balance(cls, v: Any) -> Any:
        return _reject_float(v)

    def debit(self, amount: Any) -> bool:
        """Subtract amount. Fails if amount <= 0 or exceeds the balance."""
        value = to_money(amount)
        if value is None or value <= 0:
            return False
        if value > self.balance:
            return False
        self.balance = self.balance - value
        return True

    def credit(self, amount: Any) -> bool:
        """Add amount. Fails if amount <= 0."""
        value = to_money(amount)
        if value is None or value <= 0:
            return False
        self.balance = self.balance + value
        return True

    def add_expenditure(self, expenditure: Optional[Expenditure]) -> None:
        if expenditure is not None:
            self.expenditures.append(expenditure)

    def get_expenditures(self) -> list[Expenditure]:
        return list(self.expenditures)


# =============================================================================
# RECEIPT
# =============================================================================

class Receipt(BaseModel):
    """A receipt file filed against an expenditure."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=50)
    expense_code: str = Field(
        ...,
        max_length=50,
        description="Id of the expenditure this receipt belongs to"
    )
    file_path: str = Field(..., max_length=500)
    timestamp: datetime = Field(default_factory=datetime.now)
