"""
Pluggable allocation primitives.

Every buffer behind a string, array or object is obtained from an Allocator.
The default SystemAllocator simply hands out Python storage; the
AccountingAllocator wraps another allocator and keeps books on live blocks so
leaks and double frees become observable.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Protocol
from typing import TypeAlias
from typing import runtime_checkable

from ._errors import AllocationError

logger = logging.getLogger(__name__)

# Slot storage for containers, byte storage for strings and output buffers
Block: TypeAlias = list[Any] | bytearray


@runtime_checkable
class Allocator(Protocol):
    """allocate / reallocate / release triple used for every buffer."""

    def allocate(self, size: int, *, raw: bool = False) -> Block: ...

    def reallocate(self, block: Block, size: int) -> Block: ...

    def release(self, block: Block) -> None: ...


class SystemAllocator:
    """Allocator backed directly by the interpreter's heap."""

    def allocate(self, size: int, *, raw: bool = False) -> Block:
        if size < 0:
            raise ValueError("size must be a non-negative integer")
        if raw:
            return bytearray(size)
        return [None] * size

    def reallocate(self, block: Block, size: int) -> Block:
        if size < 0:
            raise ValueError("size must be a non-negative integer")
        keep = min(len(block), size)
        if isinstance(block, bytearray):
            new_block: Block = bytearray(size)
        else:
            new_block = [None] * size
        new_block[:keep] = block[:keep]
        return new_block

    def release(self, block: Block) -> None:
        # Storage is reclaimed by the garbage collector once unreferenced
        return None


_default_allocator = SystemAllocator()


def default_allocator() -> Allocator:
    """Returns the process-wide allocator used when none is injected."""
    return _default_allocator


class AccountingAllocator:
    """
    Tracks every block handed out by a wrapped allocator.

    Keeps live block count, live size, peak size and call totals. Releasing
    a block that is not live raises ValueError, which turns double frees
    into loud failures in tests.
    """

    def __init__(self, inner: Allocator | None = None) -> None:
        self.inner = inner if inner is not None else SystemAllocator()
        self._live: dict[int, tuple[Block, int]] = {}
        self.live_size = 0
        self.peak_size = 0
        self.allocations = 0
        self.reallocations = 0
        self.releases = 0

    @property
    def live_blocks(self) -> int:
        return len(self._live)

    def _track(self, block: Block, size: int) -> None:
        self._live[id(block)] = (block, size)
        self.live_size += size
        self.peak_size = max(self.peak_size, self.live_size)

    def allocate(self, size: int, *, raw: bool = False) -> Block:
        block = self.inner.allocate(size, raw=raw)
        self.allocations += 1
        self._track(block, size)
        logger.debug(
            "alloc(%d%s) => %#x [live: %d, size: %d]",
            size,
            ", raw" if raw else "",
            id(block),
            self.live_blocks,
            self.live_size,
        )
        return block

    def reallocate(self, block: Block, size: int) -> Block:
        entry = self._live.get(id(block))
        if entry is None or entry[0] is not block:
            raise ValueError("reallocate of a block that is not live")
        new_block = self.inner.reallocate(block, size)
        del self._live[id(block)]
        self.live_size -= entry[1]
        self.reallocations += 1
        self._track(new_block, size)
        logger.debug(
            "realloc(%#x, %d) => %#x [live: %d, size: %d]",
            id(block),
            size,
            id(new_block),
            self.live_blocks,
            self.live_size,
        )
        return new_block

    def release(self, block: Block) -> None:
        entry = self._live.get(id(block))
        if entry is None or entry[0] is not block:
            raise ValueError("release of a block that is not live")
        del self._live[id(block)]
        self.live_size -= entry[1]
        self.releases += 1
        self.inner.release(block)
        logger.debug(
            "release(%#x) [live: %d, size: %d]",
            id(block),
            self.live_blocks,
            self.live_size,
        )

    def summary(self) -> str:
        """One-line memory dump of the current accounting state."""
        return (
            f"live blocks={self.live_blocks} live size={self.live_size} "
            f"peak size={self.peak_size} allocations={self.allocations} "
            f"reallocations={self.reallocations} releases={self.releases}"
        )


__all__ = [
    "AccountingAllocator",
    "AllocationError",
    "Allocator",
    "Block",
    "SystemAllocator",
    "default_allocator",
]
