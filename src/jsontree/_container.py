"""
Growable container engine shared by arrays, object entry lists and byte
buffers.

Capacity grows geometrically so N appends cost O(log N) reallocations. Growth
is all-or-nothing: when the allocator refuses a request the container keeps
its previous block, length and capacity.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from ._allocator import Allocator
from ._allocator import Block
from ._allocator import default_allocator


@dataclass(frozen=True)
class GrowthPolicy:
    """
    Configures when and by how much a container grows.

    A container grows when it is empty-capacity or when its length reaches
    ``capacity * threshold``; the new capacity is
    ``max(initial_capacity, ceil(capacity * multiplier))``.
    """

    initial_capacity: int = 1
    multiplier: float = 2.0
    threshold: float = 1.0

    def __post_init__(self) -> None:
        if not isinstance(self.initial_capacity, int) or isinstance(
            self.initial_capacity, bool
        ):
            raise TypeError("initial_capacity must be an integer")
        if self.initial_capacity < 1:
            raise ValueError("initial_capacity must be at least 1")
        if not self.multiplier > 1:
            raise ValueError("multiplier must be greater than 1")
        if not 0 < self.threshold <= 1:
            raise ValueError("threshold must be in (0, 1]")

    def needs_growth(self, length: int, capacity: int) -> bool:
        return capacity == 0 or length >= capacity * self.threshold

    def next_capacity(self, capacity: int, required: int) -> int:
        new_capacity = max(
            self.initial_capacity, math.ceil(capacity * self.multiplier)
        )
        while new_capacity < required:
            new_capacity = math.ceil(new_capacity * self.multiplier)
        return new_capacity


DEFAULT_POLICY = GrowthPolicy()


@dataclass
class Cursor:
    """Caller-owned iteration state for iterate() style traversal."""

    index: int = 0


class Container:
    """
    Ordered growable storage backed by allocator blocks.

    Slot mode stores arbitrary Python objects; raw mode stores bytes. The
    block is only allocated on first insertion.
    """

    __slots__ = (
        "_allocator",
        "_block",
        "_policy",
        "_raw",
        "capacity",
        "length",
        "reallocations",
    )

    def __init__(
        self,
        allocator: Allocator | None = None,
        policy: GrowthPolicy = DEFAULT_POLICY,
        *,
        raw: bool = False,
    ) -> None:
        self._allocator = allocator if allocator is not None else default_allocator()
        self._policy = policy
        self._raw = raw
        self._block: Block | None = None
        self.length = 0
        self.capacity = 0
        self.reallocations = 0

    @property
    def allocator(self) -> Allocator:
        return self._allocator

    @property
    def policy(self) -> GrowthPolicy:
        return self._policy

    def reserve(self, required: int) -> None:
        """Ensures room for ``required`` items, growing per the policy."""
        if required <= 0:
            return
        if required <= self.capacity and not self._policy.needs_growth(
            required - 1, self.capacity
        ):
            return

        new_capacity = self._policy.next_capacity(self.capacity, required)
        if self._block is None:
            block = self._allocator.allocate(new_capacity, raw=self._raw)
        else:
            block = self._allocator.reallocate(self._block, new_capacity)

        self._block = block
        self.capacity = new_capacity
        self.reallocations += 1

    def _storage(self) -> Block:
        if self._block is None:
            raise IndexError("container has no storage")
        return self._block

    def append(self, item: Any) -> None:
        self.reserve(self.length + 1)
        self._storage()[self.length] = item
        self.length += 1

    def extend(self, data: bytes | bytearray | memoryview) -> None:
        """Appends a run of bytes (raw mode only)."""
        if not self._raw:
            raise TypeError("extend() requires a raw container")
        count = len(data)
        if not count:
            return
        self.reserve(self.length + count)
        self._storage()[self.length : self.length + count] = data
        self.length += count

    def _check_index(self, index: int) -> int:
        if index < 0:
            index += self.length
        if not 0 <= index < self.length:
            raise IndexError("container index out of range")
        return index

    def __getitem__(self, index: int) -> Any:
        index = self._check_index(index)
        return self._storage()[index]

    def __setitem__(self, index: int, item: Any) -> None:
        index = self._check_index(index)
        self._storage()[index] = item

    def __len__(self) -> int:
        return self.length

    def __iter__(self) -> Iterator[Any]:
        for index in range(self.length):
            yield self._storage()[index]

    def remove_at(self, index: int) -> Any:
        """Removes and returns the item at ``index``, shifting later items left."""
        index = self._check_index(index)
        block = self._storage()
        item = block[index]
        block[index : self.length - 1] = block[index + 1 : self.length]
        self.length -= 1
        if not self._raw:
            block[self.length] = None
        return item

    def clear(self) -> None:
        """Drops all items but keeps the block for reuse."""
        if self._block is not None and not self._raw:
            self._block[: self.length] = [None] * self.length
        self.length = 0

    def tobytes(self) -> bytes:
        if not self._raw:
            raise TypeError("tobytes() requires a raw container")
        if self._block is None:
            return b""
        return bytes(self._block[: self.length])

    def release(self) -> None:
        """Returns the block to the allocator; the container becomes empty."""
        if self._block is not None:
            block = self._block
            self._block = None
            self._allocator.release(block)
        self.length = 0
        self.capacity = 0


__all__ = ["DEFAULT_POLICY", "Container", "Cursor", "GrowthPolicy"]
