"""
Expenditure Store

The canonical, ordered collection of recorded expenditures with a
case-insensitive id index.

Id generation:
    An expenditure submitted without an id gets `<prefix><counter>`, the
    counter zero-padded to the configured width (EXP0001, EXP0002, ...).
    The counter belongs to the store. load_expenditures() seeds it from the
    highest numeric suffix among the loaded ids, so a restart never hands
    out an id that is already on disk. reset_id_counter() exists for tests.
"""

import re
import threading
from typing import Iterable, Optional

import structlog

from xpense.config import get_settings
from xpense.containers import AssociationMap, DynamicSequence
from xpense.ledger.errors import DuplicateIdError, ValidationError
from xpense.models.ledger import Expenditure, normalize_name
from xpense.validation import ExpenditureValidator


class ExpenditureStore:
    """Ordered expenditure collection with id uniqueness."""

    def __init__(
        self,
        id_prefix: Optional[str] = None,
        id_width: Optional[int] = None,
        validator: Optional[ExpenditureValidator] = None,
    ):
        if id_prefix is None or id_width is None:
            ledger_settings = get_settings().ledger
            id_prefix = id_prefix or ledger_settings.expenditure_id_prefix
            id_width = id_width or ledger_settings.expenditure_id_width

        self.id_prefix = id_prefix
        self.id_width = id_width
        self._suffix_pattern = re.compile(rf"^{re.escape(id_prefix)}(\d+)$", re.IGNORECASE)
        self._counter = 0

        self._expenditures: DynamicSequence[Expenditure] = DynamicSequence()
        self._index: AssociationMap[str, Expenditure] = AssociationMap(key_func=normalize_name)
        self._validator = validator or ExpenditureValidator()
        self._lock = threading.RLock()
        self._logger = structlog.get_logger("xpense.expenditures")

    # -------------------------------------------------------------------------
    # Id generation
    # -------------------------------------------------------------------------

    @property
    def id_counter(self) -> int:
        """The numeric suffix of the last generated (or seeded) id."""
        return self._counter

    def reset_id_counter(self, value: int = 0) -> None:
        with self._lock:
            self._counter = value

    def _numeric_suffix(self, expenditure_id: Optional[str]) -> Optional[int]:
        if not expenditure_id:
            return None
        match = self._suffix_pattern.match(expenditure_id.strip())
        return int(match.group(1)) if match else None

    def _seed_counter(self, expenditure_ids: Iterable[Optional[str]]) -> None:
        suffixes = [s for s in map(self._numeric_suffix, expenditure_ids) if s is not None]
        if suffixes:
            self._counter = max(self._counter, max(suffixes))

    def generate_id(self) -> str:
        """Next unused id. Ids taken manually are skipped."""
        with self._lock:
            while True:
                self._counter += 1
                candidate = f"{self.id_prefix}{self._counter:0{self.id_width}d}"
                if not self._index.contains_key(candidate):
                    return candidate

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def record(self, expenditure: Optional[Expenditure]) -> Expenditure:
        """
        Validate, assign an id if needed, and append the expenditure.

        Raises:
            ValidationError: missing record, blank id or description,
                             non-positive amount, missing category or timestamp.
            DuplicateIdError: the id is already taken (case-insensitive).
        """
        generate = expenditure is not None and expenditure.id is None
        result = self._validator.validate(expenditure, require_id=not generate)
        if not result.is_valid:
            raise ValidationError(result.summary(), result.issues)

        with self._lock:
            if generate:
                expenditure.id = self.generate_id()
            elif self._index.contains_key(expenditure.id):
                raise DuplicateIdError(expenditure.id)

            self._expenditures.append(expenditure)
            self._index.put(expenditure.id, expenditure)

        return expenditure

    def add_expenditure(self, expenditure: Optional[Expenditure]) -> bool:
        """Returns False for invalid or duplicate expenditures."""
        try:
            self.record(expenditure)
        except (ValidationError, DuplicateIdError) as e:
            self._logger.info("expenditure_not_added", reason=str(e))
            return False
        return True

    def load_expenditures(self, expenditures: Iterable[Expenditure]) -> int:
        """
        Bulk-load previously persisted expenditures and seed the id counter.

        Invalid and duplicate records are skipped with a warning. Returns the
        number of records loaded.
        """
        records = list(expenditures)
        loaded = 0
        with self._lock:
            self._seed_counter(e.id for e in records if e is not None)
            for expenditure in records:
                try:
                    self.record(expenditure)
                    loaded += 1
                except (ValidationError, DuplicateIdError) as e:
                    self._logger.warning(
                        "expenditure_skipped_on_load",
                        expenditure_id=getattr(expenditure, "id", None),
                        reason=str(e),
                    )
        return loaded

    def remove_expenditure(self, expenditure_id: Optional[str]) -> bool:
        """Remove by id (case-insensitive). Returns False if unknown."""
        if expenditure_id is None:
            return False
        with self._lock:
            existing = self._index.remove(expenditure_id)
            if existing is None:
                return False
            for position, candidate in enumerate(self._expenditures):
                if candidate is existing:
                    self._expenditures.remove_at(position)
                    break
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_expenditure(self, expenditure_id: Optional[str]) -> Optional[Expenditure]:
        if expenditure_id is None:
            return None
        return self._index.get(expenditure_id)

    def contains_id(self, expenditure_id: Optional[str]) -> bool:
        return self.get_expenditure(expenditure_id) is not None

    def get_all_expenditures(self) -> list[Expenditure]:
        return self._expenditures.to_list()

    def size(self) -> int:
        return self._expenditures.size()

    def __len__(self) -> int:
        return self._expenditures.size()
