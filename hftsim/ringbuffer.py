"""A fixed-capacity single-producer, single-consumer ring buffer."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """A FIFO buffer with a power-of-two capacity and no wasted slots.

    One side inserts items and the other removes them. The head and tail
    counters grow without bound, and a slot is found by masking a counter
    with ``size - 1``.
    """

    def __init__(self, size: int = 16) -> None:
        if size <= 0:
            raise ValueError("buffer cannot be of zero size")
        if size & (size - 1):
            raise ValueError("buffer size is not a power of 2")
        self._size = size
        self._mask = size - 1
        self._data: list[T | None] = [None] * size
        self._head = 0
        self._tail = 0

    @property
    def size(self) -> int:
        """The capacity of the buffer."""
        return self._size

    def clear(self) -> None:
        """Drop every stored item."""
        self._tail = self._head

    def is_empty(self) -> bool:
        return self.read_available() == 0

    def is_full(self) -> bool:
        return self.write_available() == 0

    def read_available(self) -> int:
        """Number of items that can be read."""
        return self._head - self._tail

    def write_available(self) -> int:
        """Number of free slots."""
        return self._size - (self._head - self._tail)

    def _put(self, item: T) -> None:
        self._data[self._head & self._mask] = item
        self._head += 1

    def _take(self) -> T:
        item = self._data[self._tail & self._mask]
        self._tail += 1
        return item  # type: ignore[return-value]

    def insert(self, item: T) -> bool:
        """Store ``item``; return False if the buffer is full."""
        if self.is_full():
            return False
        self._put(item)
        return True

    def insert_from(self, callback: Callable[[], T]) -> bool:
        """Store what ``callback`` returns, calling it only if there is room."""
        if self.is_full():
            return False
        self._put(callback())
        return True

    def discard(self, count: int = 1) -> int:
        """Drop up to ``count`` items unread and return how many were dropped."""
        if count < 0:
            raise ValueError("count must not be negative")
        removed = min(count, self.read_available())
        self._tail += removed
        return removed

    def pop(self) -> T:
        """Remove and return the oldest item; raise IndexError if empty."""
        if self.is_empty():
            raise IndexError("pop from an empty ring buffer")
        return self._take()

    def peek(self) -> T | None:
        """The oldest item without removing it, or None if empty."""
        if self.is_empty():
            return None
        return self._data[self._tail & self._mask]

    def at(self, index: int) -> T | None:
        """The item ``index`` places after the oldest, or None if out of range."""
        if index < 0 or self.read_available() <= index:
            return None
        return self._data[(self._tail + index) & self._mask]

    def __getitem__(self, index: int) -> T:
        if index < 0 or self.read_available() <= index:
            raise IndexError("ring buffer index out of range")
        return self._data[(self._tail + index) & self._mask]  # type: ignore[return-value]

    def __len__(self) -> int:
        return self.read_available()

    def write(
        self,
        items: Sequence[T],
        chunk: int = 0,
        callback: Callable[[], None] | None = None,
    ) -> int:
        """Store as many of ``items`` as fit and return how many were stored.

        The first pass stores at most ``chunk`` items when ``chunk`` is set.
        Passes repeat until every item is stored or the buffer stays full;
        ``callback`` runs after each pass, so a consumer may make room.
        """
        count = len(items)
        written = 0
        to_write = chunk if 0 < chunk < count else count
        while written < count:
            available = self.write_available()
            if available == 0:
                break
            for item in items[written:written + min(to_write, available)]:
                self._put(item)
                written += 1
            if callback is not None:
                callback()
            to_write = count - written
        return written

    def read(
        self,
        count: int,
        chunk: int = 0,
        callback: Callable[[], None] | None = None,
    ) -> list[T]:
        """Remove and return up to ``count`` items, oldest first.

        The first pass reads at most ``chunk`` items when ``chunk`` is set.
        Passes repeat until ``count`` items are read or the buffer stays
        empty; ``callback`` runs after each pass, so a producer may refill.
        """
        result: list[T] = []
        to_read = chunk if 0 < chunk < count else count
        while len(result) < count:
            available = self.read_available()
            if available == 0:
                break
            result.extend(self._take() for _ in range(min(to_read, available)))
            if callback is not None:
                callback()
            to_read = count - len(result)
        return result