"""
In-Memory Storage

Keeps each entity list as a copy in a dict. Used by the tests and by
callers that don't want anything on disk. Writes can be made to fail to
exercise the non-fatal persistence path.
"""

from typing import Optional, Sequence

from pydantic import BaseModel

from xpense.services.storage.interface import (
    EntityKind,
    LedgerStorageInterface,
    PersistenceError,
)


class InMemoryStorage(LedgerStorageInterface):

    def __init__(self, initial: Optional[dict[EntityKind, Sequence[BaseModel]]] = None):
        self._data: dict[EntityKind, list[BaseModel]] = {
            kind: list(records) for kind, records in (initial or {}).items()
        }
        self.fail_writes = False
        self.save_calls: list[EntityKind] = []

    def load(self, kind: EntityKind) -> list[BaseModel]:
        return [record.model_copy(deep=True) for record in self._data.get(kind, [])]

    def save(self, kind: EntityKind, records: Sequence[BaseModel]) -> bool:
        self.save_calls.append(kind)
        if self.fail_writes:
            raise PersistenceError(f"Simulated write failure for {kind.value}")
        self._data[kind] = [record.model_copy(deep=True) for record in records]
        return True

    def stored(self, kind: EntityKind) -> list[BaseModel]:
        """What the last successful save of `kind` wrote."""
        return list(self._data.get(kind, []))
