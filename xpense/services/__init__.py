"""Services package."""

from xpense.services.storage import (
    EntityKind,
    FlatFileStorage,
    InMemoryStorage,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
    StorageNotFoundError,
)

__all__ = [
    # Storage services
    "EntityKind",
    "FlatFileStorage",
    "InMemoryStorage",
    "LedgerStorageInterface",
    "PersistenceError",
    "StorageError",
    "StorageNotFoundError",
]
