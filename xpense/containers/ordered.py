"""
Ordered-Key Map

A map over totally ordered keys with sorted iteration and point lookup.

The keys live in a sorted array searched by bisection and the values in a
hash map, so lookups are O(1), ordered range scans are O(log n + k), and no
insertion order (sorted input included) degrades them. Inserting a new key
is O(n) for the array shift.
"""

from bisect import bisect_left, bisect_right, insort
from typing import Any, Generic, Iterator, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class OrderedKeyMap(Generic[K, V]):
    """Sorted map. Keys must be hashable and mutually comparable."""

    def __init__(self):
        self._keys: list[K] = []
        self._values: dict[K, V] = {}

    def put(self, key: K, value: V) -> None:
        """Insert, or replace the value of an existing key."""
        if key is None:
            raise ValueError("OrderedKeyMap keys cannot be None")
        if key not in self._values:
            insort(self._keys, key)
        self._values[key] = value

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._values.get(key, default)

    def contains_key(self, key: K) -> bool:
        return key in self._values

    def remove(self, key: K) -> Optional[V]:
        if key not in self._values:
            return None
        index = bisect_left(self._keys, key)
        del self._keys[index]
        return self._values.pop(key)

    def first_key(self) -> Optional[K]:
        return self._keys[0] if self._keys else None

    def last_key(self) -> Optional[K]:
        return self._keys[-1] if self._keys else None

    def keys(self) -> list[K]:
        return list(self._keys)

    def values(self) -> list[V]:
        return [self._values[key] for key in self._keys]

    def items(self) -> list[tuple[K, V]]:
        return [(key, self._values[key]) for key in self._keys]

    def range_items(self, low: Any, high: Any) -> list[tuple[K, V]]:
        """Entries with low <= key <= high, in key order."""
        start = bisect_left(self._keys, low)
        stop = bisect_right(self._keys, high)
        return [(key, self._values[key]) for key in self._keys[start:stop]]

    def size(self) -> int:
        return len(self._keys)

    def is_empty(self) -> bool:
        return not self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())
