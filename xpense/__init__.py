"""
Xpense - Project Expenditure Ledger

Tracks project expenditures against bank accounts and categories and keeps
the money movements and the expense records consistent with each other.

PRINCIPLES:
1. An expenditure is recorded if and only if its amount was debited
2. Every failure becomes an alert, never an escaped exception
3. Money is always an exact Decimal
4. Every step is auditable
5. Storage is a swappable collaborator
"""

__version__ = "1.0.0"
__author__ = "Xpense Team"
