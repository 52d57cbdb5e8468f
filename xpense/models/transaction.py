"""
Transaction and Validation Models

TransactionState is the state machine of one "add expenditure" run:

    VALIDATING -> REJECTED            (nothing was mutated)
    VALIDATING -> DEBITED
    DEBITED    -> COMMITTED           (recorded, indexed, persistence requested)
    DEBITED    -> ROLLED_BACK         (record failed, debit reversed)

COMMITTED, ROLLED_BACK and REJECTED are terminal.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class TransactionState(str, Enum):
    VALIDATING = "validating"
    REJECTED = "rejected"
    DEBITED = "debited"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    TransactionState.REJECTED,
    TransactionState.COMMITTED,
    TransactionState.ROLLED_BACK,
})

ALLOWED_TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
    TransactionState.VALIDATING: frozenset({TransactionState.REJECTED, TransactionState.DEBITED}),
    TransactionState.DEBITED: frozenset({TransactionState.COMMITTED, TransactionState.ROLLED_BACK}),
    TransactionState.REJECTED: frozenset(),
    TransactionState.COMMITTED: frozenset(),
    TransactionState.ROLLED_BACK: frozenset(),
}


class TransactionResult(BaseModel):
    """
    Outcome of one add-expenditure transaction.

    Truthy when the expenditure was committed. `persisted` is False when the
    in-memory commit succeeded but the durable write did not.
    """

    transaction_id: UUID = Field(default_factory=uuid4)
    completed_at: datetime = Field(default_factory=datetime.now)

    success: bool
    state: TransactionState
    account_id: Optional[str] = None
    expenditure_id: Optional[str] = None

    error_type: Optional[str] = Field(
        default=None,
        description="Name of the error class that ended the transaction"
    )
    error_message: Optional[str] = None
    persisted: bool = False

    def __bool__(self) -> bool:
        return self.success


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'blank', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating one record."""

    entity_type: str
    entity_id: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    def summary(self) -> str:
        """One-line description of the errors, for alerts and logs."""
        errors = [issue.message for issue in self.issues if issue.severity == "error"]
        return "; ".join(errors) if errors else "valid"
