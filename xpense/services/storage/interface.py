"""
Abstract Storage Interface

The ledger core never touches files. It hands whole entity lists to a
storage backend and reads them back at startup. The interface is
intentionally small: load a kind, save a kind.

Implementations:
- FlatFileStorage: one pipe-delimited file per entity kind
- InMemoryStorage: for tests
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from pydantic import BaseModel


class EntityKind(str, Enum):
    """The entity lists that are persisted, one file (or slot) each."""
    EXPENDITURES = "expenditures"
    CATEGORIES = "categories"
    ACCOUNTS = "accounts"
    RECEIPTS = "receipts"


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self, kind: EntityKind) -> list[BaseModel]:
        """
        Read every stored record of one kind.

        Args:
            kind: Which entity list to read

        Returns:
            The records in stored order. Missing storage yields an empty
            list; malformed records are skipped.

        Raises:
            StorageError: If the backend can't be read at all
        """
        pass

    @abstractmethod
    def save(self, kind: EntityKind, records: Sequence[BaseModel]) -> bool:
        """
        Replace the stored list of one kind with `records`.

        Args:
            kind: Which entity list to write
            records: The complete current list

        Returns:
            True if saved successfully

        Raises:
            PersistenceError: If the write fails after retries
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A durable write failed."""
    pass


class StorageNotFoundError(StorageError):
    """The storage location does not exist and can't be created."""
    pass
