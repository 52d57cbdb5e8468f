"""Expenditure search package."""

from xpense.queries.executor import ExpenditureSearch

__all__ = ["ExpenditureSearch"]
