"""
Min-Priority Heap

Binary min-heap over a native list (heapq). The priority of an element is
computed by a caller-supplied key function; elements themselves are never
compared, only their priorities.

insert: O(log n) sift-up.  remove_min: O(log n) sift-down.

IMPORTANT: ties between equal priorities are resolved by heap shape, NOT by
insertion order. Callers must not assume FIFO within a priority.
"""

import heapq
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class _HeapEntry(Generic[T]):
    """Pairs an element with its priority; ordered by priority only."""

    __slots__ = ("priority", "item")

    def __init__(self, priority: Any, item: T):
        self.priority = priority
        self.item = item

    def __lt__(self, other: "_HeapEntry[T]") -> bool:
        return self.priority < other.priority


class MinHeap(Generic[T]):
    """
    Priority queue returning the element with the lowest priority first.

    Args:
        key: Function returning the priority of an element.
    """

    def __init__(self, key: Callable[[T], Any]):
        self._key = key
        self._heap: list[_HeapEntry[T]] = []

    def insert(self, item: T) -> None:
        heapq.heappush(self._heap, _HeapEntry(self._key(item), item))

    def remove_min(self) -> Optional[T]:
        """Remove and return the most urgent element, or None when empty."""
        if not self._heap:
            return None
        return heapq.heappop(self._heap).item

    def peek_min(self) -> Optional[T]:
        return self._heap[0].item if self._heap else None

    def drain(self) -> list[T]:
        """Remove every element, returning them in priority order."""
        drained = []
        while self._heap:
            drained.append(heapq.heappop(self._heap).item)
        return drained

    def satisfies_heap_property(self) -> bool:
        """Check that every parent's priority is <= each child's."""
        size = len(self._heap)
        for index in range(size):
            for child in (2 * index + 1, 2 * index + 2):
                if child < size and self._heap[child] < self._heap[index]:
                    return False
        return True

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)
