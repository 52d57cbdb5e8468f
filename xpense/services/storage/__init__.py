"""
Storage Services Package

Provides the abstract persistence interface and its implementations.
Flat files are the default backend; the in-memory backend serves tests.
"""

from xpense.services.storage.interface import (
    EntityKind,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
    StorageNotFoundError,
)
from xpense.services.storage.flat_file import FlatFileStorage
from xpense.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "EntityKind",
    "LedgerStorageInterface",
    # Exceptions
    "PersistenceError",
    "StorageError",
    "StorageNotFoundError",
    # Implementations
    "FlatFileStorage",
    "InMemoryStorage",
]
