"""
Record Validation

Validators check the business rules the models do not enforce at
construction time, and report every problem as a ValidationIssue:

- required text fields must be non-blank
- amounts must be finite and positive
- references (category, timestamp) must be present
- text fields must not contain the record delimiter or line breaks,
  so that every stored record round-trips through the flat files

Validation NEVER silently fixes a record. It reports issues and the
caller decides.
"""

from typing import Optional

from xpense.models.ledger import Account, Category, Expenditure
from xpense.models.transaction import ValidationIssue, ValidationResult


RECORD_DELIMITER = "|"
_FORBIDDEN_CHARACTERS = (RECORD_DELIMITER, "\n", "\r")


def _check_text(
    issues: list[ValidationIssue],
    field: str,
    value: Optional[str],
    required: bool = True,
) -> None:
    """Append issues for a blank (when required) or unstorable text field."""
    if value is None or not value.strip():
        if required:
            issues.append(ValidationIssue(
                field=field,
                issue_type="blank",
                message=f"{field.replace('_', ' ').capitalize()} must not be blank",
            ))
        return

    if any(ch in value for ch in _FORBIDDEN_CHARACTERS):
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_character",
            message=f"{field.replace('_', ' ').capitalize()} must not contain '|' or line breaks",
        ))


class CategoryValidator:
    """
    Validates categories.

    Name, description and color must be non-blank. The id may be blank;
    the registry generates one.
    """

    def validate(self, category: Optional[Category]) -> ValidationResult:
        if category is None:
            return ValidationResult(
                entity_type="category",
                issues=[ValidationIssue(
                    field="category",
                    issue_type="missing",
                    message="Category is required",
                )],
            )

        issues: list[ValidationIssue] = []
        _check_text(issues, "id", category.id, required=False)
        _check_text(issues, "name", category.name)
        _check_text(issues, "description", category.description)
        _check_text(issues, "color", category.color)

        return ValidationResult(
            entity_type="category",
            entity_id=category.name or None,
            issues=issues,
        )


class AccountValidator:
    """Validates accounts: the id must be non-blank and storable."""

    def validate(self, account: Optional[Account]) -> ValidationResult:
        if account is None:
            return ValidationResult(
                entity_type="account",
                issues=[ValidationIssue(
                    field="account",
                    issue_type="missing",
                    message="Account is required",
                )],
            )

        issues: list[ValidationIssue] = []
        _check_text(issues, "id", account.id)
        _check_text(issues, "name", account.name, required=False)

        return ValidationResult(
            entity_type="account",
            entity_id=account.id or None,
            issues=issues,
        )


class ExpenditureValidator:
    """
    Validates expenditures before they enter the store.

    Checks:
    - id non-blank (unless it is still to be generated)
    - description non-blank
    - amount finite and > 0
    - category present with a non-blank name
    - timestamp present
    - text fields storable
    """

    def validate(
        self,
        expenditure: Optional[Expenditure],
        require_id: bool = True,
    ) -> ValidationResult:
        """
        Args:
            expenditure: The record to check.
            require_id: False while the id is still to be generated.
        """
        if expenditure is None:
            return ValidationResult(
                entity_type="expenditure",
                issues=[ValidationIssue(
                    field="expenditure",
                    issue_type="missing",
                    message="Expenditure is required",
                )],
            )

        issues: list[ValidationIssue] = []

        _check_text(issues, "id", expenditure.id, required=require_id)
        _check_text(issues, "description", expenditure.description)
        _check_text(issues, "phase", expenditure.phase, required=False)
        _check_text(issues, "account_id", expenditure.account_id, required=False)
        _check_text(issues, "receipt_info", expenditure.receipt_info, required=False)

        amount = expenditure.amount
        if amount is None or not amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a finite number",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must be greater than zero (got {amount})",
            ))

        if expenditure.category is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
            ))
        else:
            _check_text(issues, "category", expenditure.category.name)

        if expenditure.timestamp is None:
            issues.append(ValidationIssue(
                field="timestamp",
                issue_type="missing",
                message="Timestamp is required",
            ))

        return ValidationResult(
            entity_type="expenditure",
            entity_id=expenditure.id,
            issues=issues,
        )
