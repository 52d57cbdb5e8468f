"""FIFO queue and LIFO stack adapters. Empty reads return None instead of raising."""

from collections import deque
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class FifoQueue(Generic[T]):
    """First-in, first-out queue (offer / poll / peek)."""

    def __init__(self):
        self._items: deque[T] = deque()

    def offer(self, item: T) -> None:
        self._items.append(item)

    def poll(self) -> Optional[T]:
        return self._items.popleft() if self._items else None

    def peek(self) -> Optional[T]:
        return self._items[0] if self._items else None

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))


class LifoStack(Generic[T]):
    """Last-in, first-out stack (push / pop / peek)."""

    def __init__(self):
        self._items: list[T] = []

    def push(self, item: T) -> None:
        self._items.append(item)

    def pop(self) -> Optional[T]:
        return self._items.pop() if self._items else None

    def peek(self) -> Optional[T]:
        return self._items[-1] if self._items else None

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
