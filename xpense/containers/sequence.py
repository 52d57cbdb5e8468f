"""
Dynamic Sequence

An indexed, growable sequence backed by a native list (amortized O(1)
append, O(1) indexed read/write, O(n) arbitrary insert/remove).

Iteration walks a snapshot of the contents taken when the iterator is
created, so a caller may mutate the sequence while iterating without
skipping or repeating elements. Out-of-range indexes raise IndexError;
negative indexes are not accepted.
"""

from typing import Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


class DynamicSequence(Generic[T]):
    """Ordered, index-addressable collection."""

    def __init__(self, items: Optional[Iterable[T]] = None):
        self._items: list[T] = list(items) if items is not None else []

    def _check_index(self, index: int, upper: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= upper:
            raise IndexError(f"Index {index} out of range for size {len(self._items)}")

    def append(self, item: T) -> None:
        self._items.append(item)

    def get(self, index: int) -> T:
        self._check_index(index, len(self._items))
        return self._items[index]

    def set(self, index: int, item: T) -> T:
        """Replace the element at index and return the previous one."""
        self._check_index(index, len(self._items))
        previous = self._items[index]
        self._items[index] = item
        return previous

    def insert(self, index: int, item: T) -> None:
        """Insert before index; index == size appends."""
        self._check_index(index, len(self._items) + 1)
        self._items.insert(index, item)

    def remove_at(self, index: int) -> T:
        self._check_index(index, len(self._items))
        return self._items.pop(index)

    def remove(self, item: T) -> bool:
        """Remove the first element equal to item. Returns False if absent."""
        try:
            self._items.remove(item)
        except ValueError:
            return False
        return True

    def index_of(self, item: T) -> int:
        """Position of the first element equal to item, or -1."""
        for index, candidate in enumerate(self._items):
            if candidate == item:
                return index
        return -1

    def contains(self, item: T) -> bool:
        return self.index_of(item) >= 0

    def clear(self) -> None:
        self._items.clear()

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def to_list(self) -> list[T]:
        """Copy of the current contents."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __repr__(self) -> str:
        return f"DynamicSequence({self._items!r})"
