"""Fixed-capacity circular buffer.

A preallocated slot list plus a head index and a count. Pushing onto a
full buffer overwrites the oldest element. Push and indexed reads are O(1).
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular buffer with FIFO eviction once full.

    Args:
        capacity: Maximum number of elements held (>= 1).
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._slots: list[T | None] = [None] * capacity
        self._capacity = capacity
        self._head = 0  # next slot to write
        self._count = 0

    def push(self, item: T) -> None:
        """Append an item, evicting the oldest one when full."""
        self._slots[self._head] = item
        self._head = (self._head + 1) % self._capacity
        if self._count < self._capacity:
            self._count += 1

    def to_list(self) -> list[T]:
        """Return the elements in insertion order (oldest first)."""
        start = (self._head - self._count) % self._capacity
        return [
            self._slots[(start + i) % self._capacity]  # type: ignore[misc]
            for i in range(self._count)
        ]

    def clear(self) -> None:
        """Drop all elements."""
        self._slots = [None] * self._capacity
        self._head = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    @property
    def latest(self) -> T | None:
        """Most recently pushed element, or None if empty."""
        if self._count == 0:
            return None
        return self._slots[(self._head - 1) % self._capacity]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self._capacity}, length={self._count})"
