"""
Expenditure Search

Deterministic sorting and filtering over recorded expenditures. Nothing
here mutates the ledger; every call works on the snapshot it was given
and returns a new list.

Sorted views are built on OrderedKeyMap: each distinct key holds the
expenditures sharing it in their original order, so sorts are stable.
Name-like filters (category, account, phase) compare case-insensitively.
A None argument matches nothing.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Hashable, Iterable, Optional

from xpense.containers import OrderedKeyMap
from xpense.models.ledger import Expenditure, normalize_name, to_money


def _bucket_by(
    expenditures: Iterable[Expenditure],
    key: Callable[[Expenditure], Optional[Hashable]],
) -> tuple[OrderedKeyMap, list[Expenditure]]:
    """Group into an ordered map; records whose key is None are returned apart."""
    buckets: OrderedKeyMap[Any, list[Expenditure]] = OrderedKeyMap()
    unkeyed: list[Expenditure] = []
    for expenditure in expenditures:
        value = key(expenditure)
        if value is None:
            unkeyed.append(expenditure)
            continue
        bucket = buckets.get(value)
        if bucket is None:
            bucket = []
            buckets.put(value, bucket)
        bucket.append(expenditure)
    return buckets, unkeyed


def _flatten(groups: Iterable[list[Expenditure]]) -> list[Expenditure]:
    return [expenditure for group in groups for expenditure in group]


class ExpenditureSearch:
    """
    Sort and search a list of expenditures.

    Usage:
        search = ExpenditureSearch(system.get_all_expenditures())
        march = search.search_by_time_range(datetime(2024, 3, 1), datetime(2024, 3, 31, 23, 59))
    """

    def __init__(self, expenditures: Iterable[Expenditure]):
        self._expenditures = [e for e in expenditures if e is not None]

    # -------------------------------------------------------------------------
    # Sorting
    # -------------------------------------------------------------------------

    def sort_by_category(self) -> list[Expenditure]:
        """Alphabetical by category name, ignoring case. Uncategorized last."""
        buckets, unkeyed = _bucket_by(
            self._expenditures,
            lambda e: normalize_name(e.category_name) if e.category_name else None,
        )
        return _flatten(buckets.values()) + unkeyed

    def sort_by_date(self) -> list[Expenditure]:
        """Chronological. Records without a timestamp come last."""
        buckets, unkeyed = _bucket_by(self._expenditures, lambda e: e.timestamp)
        return _flatten(buckets.values()) + unkeyed

    # -------------------------------------------------------------------------
    # Searching
    # -------------------------------------------------------------------------

    def search_by_time_range(
        self,
        start_date: Optional[datetime],
        end_date: Optional[datetime],
    ) -> list[Expenditure]:
        """Expenditures with start_date <= timestamp <= end_date, chronologically."""
        if start_date is None or end_date is None or start_date > end_date:
            return []
        buckets, _ = _bucket_by(self._expenditures, lambda e: e.timestamp)
        return _flatten(group for _, group in buckets.range_items(start_date, end_date))

    def search_by_category(self, category_name: Optional[str]) -> list[Expenditure]:
        if category_name is None:
            return []
        wanted = normalize_name(category_name)
        return [
            e for e in self._expenditures
            if e.category_name is not None and normalize_name(e.category_name) == wanted
        ]

    def search_by_cost_range(self, min_cost: Any, max_cost: Any) -> list[Expenditure]:
        """Expenditures with min_cost <= amount <= max_cost, cheapest first."""
        low: Optional[Decimal] = to_money(min_cost)
        high: Optional[Decimal] = to_money(max_cost)
        if low is None or high is None or low > high:
            return []
        buckets, _ = _bucket_by(self._expenditures, lambda e: e.amount)
        return _flatten(group for _, group in buckets.range_items(low, high))

    def search_by_account(self, account_id: Optional[str]) -> list[Expenditure]:
        if account_id is None:
            return []
        wanted = normalize_name(account_id)
        return [
            e for e in self._expenditures
            if e.account_id is not None and normalize_name(e.account_id) == wanted
        ]

    def search_by_phase(self, phase: Optional[str]) -> list[Expenditure]:
        if phase is None:
            return []
        wanted = normalize_name(phase)
        return [e for e in self._expenditures if normalize_name(e.phase) == wanted]
