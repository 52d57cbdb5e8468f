"""
Association Map and Unique Set

Both containers compare keys by DOMAIN equality rather than by object
identity or structural equality: the caller supplies a key normalizer
(for example case-folding of a name) which is applied at every boundary.
Two keys are the same entry when their normalized forms are equal.

Both preserve insertion order. Replacing the value of an existing key does
not move it.
"""

from typing import Callable, Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")


def _identity(value):
    return value


class AssociationMap(Generic[K, V]):
    """
    Insertion-ordered key/value map.

    Args:
        key_func: Normalizer producing the hashable identity of a key.
                  Defaults to the key itself.
    """

    def __init__(self, key_func: Optional[Callable[[K], Hashable]] = None):
        self._key_func = key_func or _identity
        # normalized key -> (original key, value)
        self._entries: dict[Hashable, tuple[K, V]] = {}

    def put(self, key: K, value: V) -> Optional[V]:
        """
        Associate value with key.

        Returns the previous value, or None if the key was new. The
        originally inserted key object is kept on replacement.
        """
        normalized = self._key_func(key)
        existing = self._entries.get(normalized)
        if existing is not None:
            original_key, previous = existing
            self._entries[normalized] = (original_key, value)
            return previous
        self._entries[normalized] = (key, value)
        return None

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(self._key_func(key))
        return entry[1] if entry is not None else default

    def get_at(self, index: int) -> V:
        """Value at insertion position index."""
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"Index {index} out of range for size {len(self._entries)}")
        return list(self._entries.values())[index][1]

    def contains_key(self, key: K) -> bool:
        return self._key_func(key) in self._entries

    def remove(self, key: K) -> Optional[V]:
        entry = self._entries.pop(self._key_func(key), None)
        return entry[1] if entry is not None else None

    def keys(self) -> list[K]:
        return [key for key, _ in self._entries.values()]

    def values(self) -> list[V]:
        return [value for _, value in self._entries.values()]

    def items(self) -> list[tuple[K, V]]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())


class UniqueSet(Generic[T]):
    """
    Insertion-ordered set that rejects duplicates per a key normalizer.

    Args:
        key_func: Normalizer producing the hashable identity of an element.
    """

    def __init__(self, key_func: Optional[Callable[[T], Hashable]] = None):
        self._key_func = key_func or _identity
        self._items: dict[Hashable, T] = {}

    def add(self, item: T) -> bool:
        """Add item. Returns False if an equal element is already present."""
        normalized = self._key_func(item)
        if normalized in self._items:
            return False
        self._items[normalized] = item
        return True

    def contains(self, item: T) -> bool:
        return self._key_func(item) in self._items

    def get_by_key(self, normalized_key: Hashable) -> Optional[T]:
        """Look up the stored element by an already-normalized key."""
        return self._items.get(normalized_key)

    def remove(self, item: T) -> bool:
        return self._items.pop(self._key_func(item), None) is not None

    def to_list(self) -> list[T]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return self.contains(item)

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())
