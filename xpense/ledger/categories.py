"""
Category Registry

Keeps the set of categories (unique by case-insensitive name) and, per
category, the ordered list of expenditures filed under it.

Every name crossing this boundary is normalized with normalize_name(), so
"Food", "food" and " FOOD " all address the same category.
"""

import threading
from typing import Optional

import structlog

from xpense.config import get_settings
from xpense.containers import AssociationMap, DynamicSequence, UniqueSet
from xpense.ledger.errors import ValidationError
from xpense.models.ledger import Category, Expenditure, normalize_name
from xpense.models.transaction import ValidationIssue
from xpense.validation import CategoryValidator


class CategoryRegistry:
    """
    Category uniqueness plus the per-category expenditure index.

    Registration and indexing share one lock, so a category cannot appear
    half-registered to a concurrent add_expenditure_to_category().
    """

    def __init__(
        self,
        validator: Optional[CategoryValidator] = None,
        id_start: Optional[int] = None,
    ):
        self._categories: UniqueSet[Category] = UniqueSet(key_func=lambda c: c.name_key)
        self._expenditures: AssociationMap[str, DynamicSequence[Expenditure]] = AssociationMap(
            key_func=normalize_name
        )
        self._validator = validator or CategoryValidator()
        if id_start is None:
            id_start = get_settings().ledger.category_id_start
        self._next_id = id_start
        self._lock = threading.RLock()
        self._logger = structlog.get_logger("xpense.categories")

    def _generate_id(self) -> str:
        taken = {c.id.casefold() for c in self._categories}
        while True:
            candidate = f"CAT{self._next_id:04d}"
            self._next_id += 1
            if candidate.casefold() not in taken:
                return candidate

    def register(self, category: Optional[Category]) -> Category:
        """
        Add a category, raising ValidationError when it can't be added.

        A blank id is replaced with a generated CAT#### id.
        """
        result = self._validator.validate(category)
        if not result.is_valid:
            raise ValidationError(result.summary(), result.issues)

        with self._lock:
            if self._categories.contains(category):
                raise ValidationError(
                    f"Category already exists: {category.name}",
                    [ValidationIssue(
                        field="name",
                        issue_type="duplicate",
                        message=f"A category named '{category.name}' already exists",
                    )],
                )
            if not category.id:
                category.id = self._generate_id()
            self._categories.add(category)
            if not self._expenditures.contains_key(category.name):
                self._expenditures.put(category.name, DynamicSequence())

        self._logger.debug("category_added", category_id=category.id, name=category.name)
        return category

    def add_category(self, category: Optional[Category]) -> bool:
        """Returns False for a missing, invalid or duplicate category."""
        try:
            self.register(category)
        except ValidationError:
            return False
        return True

    def validate_category(self, name: Optional[str]) -> bool:
        """Case-insensitive membership test."""
        return self.get_category(name) is not None

    def get_category(self, name: Optional[str]) -> Optional[Category]:
        """The registered category with this name, or None."""
        if name is None:
            return None
        return self._categories.get_by_key(normalize_name(name))

    def add_expenditure_to_category(
        self,
        name: Optional[str],
        expenditure: Optional[Expenditure],
    ) -> bool:
        """Append expenditure to the category's index. Fails for unknown categories."""
        if expenditure is None:
            return False
        with self._lock:
            if not self.validate_category(name):
                return False
            bucket = self._expenditures.get(name)
            if bucket is None:
                return False
            bucket.append(expenditure)
        return True

    def get_expenditures_for_category(self, name: Optional[str]) -> list[Expenditure]:
        if name is None:
            return []
        bucket = self._expenditures.get(name)
        return bucket.to_list() if bucket is not None else []

    def get_all_categories(self) -> list[Category]:
        return self._categories.to_list()

    def size(self) -> int:
        return self._categories.size()
