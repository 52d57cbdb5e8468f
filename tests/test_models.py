"""
Tests for Xpense

Test strategy:
1. Unit tests for individual components (models, validators, containers)
2. Integration tests for flows, with in-memory storage
3. No files outside pytest's tmp_path
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from xpense.audit import AuditLogger
from xpense.models.alert import Alert, AlertPriority
from xpense.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from xpense.models.ledger import (
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
from xpense.validation import (
    AccountValidator,
    CategoryValidator,
    ExpenditureValidator,
)


class TestLedgerModels:
    """Tests for ledger Pydantic models."""

    def test_category_strips_whitespace(self):
        """Test that whitespace is stripped from category fields."""
        category = Category(name="  Food  ", description=" Meals ", color="green")
        assert category.name == "Food"
        assert category.description == "Meals"
        assert category.name_key == "food"

    def test_expenditure_rejects_float_amount(self):
        """Test that float amounts are refused at construction."""
        with pytest.raises(ValueError):
            Expenditure(description="Lunch", amount=12.5)

    def test_expenditure_accepts_string_amount(self):
        """Test that numeric strings become exact Decimals."""
        expenditure = Expenditure(description="Lunch", amount="12.50")
        assert expenditure.amount == Decimal("12.50")
        assert expenditure.phase == "active"
        assert expenditure.id is None

    def test_blank_receipt_info_is_none(self):
        """Test an empty receipt reference is normalized to None."""
        expenditure = Expenditure(description="Lunch", amount=Decimal("1"), receipt_info="  ")
        assert expenditure.receipt_info is None

    def test_account_rejects_negative_balance(self):
        """Test that negative opening balances are rejected."""
        with pytest.raises(ValueError):
            Account(id="A1", balance=Decimal("-1"))

    def test_account_debit_and_credit(self):
        """Test debit succeeds within the balance and credit adds back."""
        account = Account(id="A1", balance=Decimal("50.00"))
        assert account.debit(Decimal("20.00")) is True
        assert account.balance == Decimal("30.00")
        assert account.credit("20.00") is True
        assert account.balance == Decimal("50.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("50.01"), 1.5, None])
    def test_account_debit_refusals_leave_balance(self, amount):
        """Test refused debits do not mutate the balance."""
        account = Account(id="A1", balance=Decimal("50.00"))
        assert account.debit(amount) is False
        assert account.balance == Decimal("50.00")

    def test_account_credit_refuses_non_positive(self):
        """Test credit of zero or less is refused."""
        account = Account(id="A1", balance=Decimal("5"))
        assert account.credit(Decimal("0")) is False
        assert account.credit(Decimal("-1")) is False
        assert account.balance == Decimal("5")

    def test_account_expenditures_not_serialized(self):
        """Test the expenditure list is excluded from dumps."""
        account = Account(id="A1", balance=Decimal("5"))
        account.add_expenditure(Expenditure(description="x", amount=Decimal("1")))
        assert "expenditures" not in account.model_dump()
        assert len(account.get_expenditures()) == 1

    def test_receipt_requires_id(self):
        """Test a receipt without an id is rejected."""
        with pytest.raises(ValueError):
            Receipt(id="", expense_code="EXP0001", file_path="r.png")


class TestMoneyHelpers:
    """Tests for money parsing and formatting helpers."""

    @pytest.mark.parametrize("value,expected", [
        (Decimal("1.10"), Decimal("1.10")),
        (3, Decimal("3")),
        (" 2.5 ", Decimal("2.5")),
    ])
    def test_to_money_accepts_exact_values(self, value, expected):
        """Test Decimal, int and numeric strings convert exactly."""
        assert to_money(value) == expected

    @pytest.mark.parametrize("value", [1.1, True, None, "abc", "NaN", Decimal("Infinity"), object()])
    def test_to_money_rejects_everything_else(self, value):
        """Test floats, bools, junk and non-finite values give None."""
        assert to_money(value) is None

    def test_normalize_name(self):
        """Test normalization strips and case-folds."""
        assert normalize_name("  FooD ") == "food"
        assert normalize_name(None) == ""


class TestTransactionModels:
    """Tests for transaction state and result models."""

    def test_terminal_states(self):
        """Test which transaction states are terminal."""
        assert TransactionState.COMMITTED.is_terminal
        assert TransactionState.ROLLED_BACK.is_terminal
        assert TransactionState.REJECTED.is_terminal
        assert not TransactionState.VALIDATING.is_terminal
        assert not TransactionState.DEBITED.is_terminal

    def test_allowed_transitions(self):
        """Test the state machine only allows the documented moves."""
        assert ALLOWED_TRANSITIONS[TransactionState.VALIDATING] == {
            TransactionState.REJECTED, TransactionState.DEBITED,
        }
        assert ALLOWED_TRANSITIONS[TransactionState.DEBITED] == {
            TransactionState.COMMITTED, TransactionState.ROLLED_BACK,
        }
        assert not ALLOWED_TRANSITIONS[TransactionState.COMMITTED]

    def test_result_truthiness(self):
        """Test a result is truthy only on success."""
        assert TransactionResult(success=True, state=TransactionState.COMMITTED)
        assert not TransactionResult(success=False, state=TransactionState.REJECTED)

    def test_validation_result_summary(self):
        """Test error counting and summaries ignore warnings."""
        result = ValidationResult(
            entity_type="category",
            issues=[
                ValidationIssue(field="name", issue_type="blank", message="Name must not be blank"),
                ValidationIssue(field="color", issue_type="style", message="odd", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.summary() == "Name must not be blank"

    def test_alert_priority_order(self):
        """Test lower priority values are more urgent."""
        assert AlertPriority.CRITICAL < AlertPriority.WARNING < AlertPriority.NOTICE
        assert Alert(message="x").priority == AlertPriority.WARNING


class TestValidators:
    """Tests for the field validators."""

    def test_category_blank_name_rejected(self):
        """Test a category whose name is blank is invalid."""
        result = CategoryValidator().validate(Category(name="   ", description="d", color="c"))
        assert not result.is_valid
        assert any(issue.field == "name" for issue in result.issues)

    def test_category_requires_description_and_color(self):
        """Test description and color are mandatory."""
        result = CategoryValidator().validate(Category(name="Food"))
        assert {issue.field for issue in result.issues} == {"description", "color"}

    def test_category_none_rejected(self):
        """Test a missing category is reported."""
        result = CategoryValidator().validate(None)
        assert result.issues[0].issue_type == "missing"

    def test_delimiter_in_text_rejected(self):
        """Test text that would break the record format is refused."""
        result = CategoryValidator().validate(Category(name="Food|Drink", description="d", color="c"))
        assert result.issues[0].issue_type == "invalid_character"

    def test_account_requires_id(self):
        """Test an account needs a non-blank id."""
        assert not AccountValidator().validate(Account(id=" ")).is_valid
        assert AccountValidator().validate(Account(id="A1")).is_valid

    def test_valid_expenditure(self):
        """Test a complete expenditure passes."""
        expenditure = Expenditure(
            id="EXP0001",
            description="Lunch",
            amount=Decimal("12.00"),
            category=Category(name="Food", description="d", color="c"),
            timestamp=datetime(2024, 3, 1, 12, 0),
        )
        assert ExpenditureValidator().validate(expenditure).is_valid

    def test_expenditure_issues(self):
        """Test every missing or bad field is reported together."""
        expenditure = Expenditure(id=" ", description="", amount=Decimal("0"))
        fields = {issue.field for issue in ExpenditureValidator().validate(expenditure).issues}
        assert fields == {"id", "description", "amount", "category", "timestamp"}

    def test_expenditure_id_optional_when_generated(self):
        """Test the id check is skipped while the id is still to be generated."""
        expenditure = Expenditure(
            description="Lunch",
            amount=Decimal("1"),
            category=Category(name="Food"),
            timestamp=datetime(2024, 1, 1),
        )
        assert ExpenditureValidator().validate(expenditure, require_id=False).is_valid
        assert not ExpenditureValidator().validate(expenditure).is_valid


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id="A001",
            description="Account registered: A001",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test AuditEvent conversion to log dict."""
        correlation_id = uuid4()
        event = AuditEventBuilder.account_debited(
            account_id="A001",
            amount=Decimal("30.00"),
            balance=Decimal("70.00"),
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "account_debited"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {"amount": "30.00", "balance_after": "70.00"}

    def test_audit_event_builder_rolled_back(self):
        """Test AuditEventBuilder for reversed debits."""
        event = AuditEventBuilder.transaction_rolled_back(
            account_id="A001",
            amount=Decimal("5"),
            error_type="DuplicateIdError",
            error_message="Duplicate expenditure id: EXP0001",
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.TRANSACTION_ROLLED_BACK
        assert event.severity == AuditSeverity.WARNING
        assert event.error_type == "DuplicateIdError"

    def test_audit_event_builder_save_failed(self):
        """Test AuditEventBuilder for persistence failures."""
        event = AuditEventBuilder.save_failed("expenditures", "disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_type == "expenditures"

    def test_audit_event_long_description_truncated(self):
        """Test descriptions built from long caller text are cut to 500 characters."""
        event = AuditEventBuilder.transaction_rejected(
            account_id="A001",
            error_type="NotFoundError",
            error_message="Category not found: " + "x" * 600,
            correlation_id=uuid4(),
        )
        assert len(event.description) == 500
        assert event.description.startswith("Expenditure rejected: Category not found")

    def test_audit_logger_survives_failing_builder(self):
        """Test a builder that raises is logged and the event is dropped."""
        logger = AuditLogger(keep_history=True)

        def broken(**kwargs):
            raise ValueError("cannot build")

        logger._build_and_log(broken, account_id="A001")
        logger.log_entity_registered("account", "A001")

        assert [e.event_type for e in logger.history] == [AuditEventType.ACCOUNT_REGISTERED]
