"""Validation package."""

from xpense.validation.validator import (
    RECORD_DELIMITER,
    AccountValidator,
    CategoryValidator,
    ExpenditureValidator,
)

__all__ = [
    "RECORD_DELIMITER",
    "AccountValidator",
    "CategoryValidator",
    "ExpenditureValidator",
]
