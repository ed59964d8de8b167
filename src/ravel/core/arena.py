"""Growable numeric pools shared by every variable of a model.

A variable's storage is a :class:`Handle` (pool, offset, size, generation)
into one of two pools. Allocation only appends, so a handle issued earlier in
a reset pass stays valid for the rest of that pass; :meth:`ValuePool.clear`
bumps the generation so handles from a previous pass are rejected instead of
silently aliasing new data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .exceptions import AccessError

logger = logging.getLogger(__name__)

FLOW = "flow"
STOCK = "stock"

_MIN_CAPACITY = 16


@dataclass(frozen=True)
class Handle:
    pool: str
    offset: int
    size: int
    generation: int

    @property
    def end(self) -> int:
        return self.offset + self.size


class ValuePool:
    def __init__(self, name: str):
        self.name = name
        self._buffer = np.zeros(_MIN_CAPACITY, dtype=np.float64)
        self._length = 0
        self.generation = 0

    def __len__(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return int(self._buffer.size)

    def alloc(self, size: int) -> Handle:
        """Append ``size`` zeroed slots and return a handle to them."""
        size = int(size)
        if size < 0:
            raise ValueError("allocation size must be non-negative")
        needed = self._length + size
        if needed > self._buffer.size:
            capacity = max(needed, 2 * self._buffer.size)
            grown = np.zeros(capacity, dtype=np.float64)
            grown[: self._length] = self._buffer[: self._length]
            self._buffer = grown
        handle = Handle(self.name, self._length, size, self.generation)
        self._buffer[self._length : needed] = 0.0
        self._length = needed
        return handle

    def valid(self, handle: Handle) -> bool:
        return (
            handle.pool == self.name
            and handle.generation == self.generation
            and handle.end <= self._length
        )

    def view(self, handle: Handle) -> np.ndarray:
        """Writable slice for ``handle``; invalidated by the next growth of this pool."""
        if handle.pool != self.name:
            raise AccessError(f"handle for pool {handle.pool!r} used with pool {self.name!r}")
        if handle.generation != self.generation:
            raise AccessError(
                f"stale handle (generation {handle.generation}, pool is at {self.generation})"
            )
        if handle.end > self._length:
            raise AccessError(
                f"handle [{handle.offset}, {handle.end}) exceeds pool {self.name!r} of size {self._length}"
            )
        return self._buffer[handle.offset : handle.end]

    def clear(self) -> None:
        self._length = 0
        self.generation += 1

    def contents(self) -> np.ndarray:
        return self._buffer[: self._length].copy()


class ValueArena:
    """The flow-like and stock-like pools of one simulation."""

    def __init__(self):
        self.flow_vars = ValuePool(FLOW)
        self.stock_vars = ValuePool(STOCK)

    def pool(self, name: str) -> ValuePool:
        if name == FLOW:
            return self.flow_vars
        if name == STOCK:
            return self.stock_vars
        raise AccessError(f"unknown pool {name!r}")

    def view(self, handle: Handle) -> np.ndarray:
        return self.pool(handle.pool).view(handle)

    def valid(self, handle: Handle) -> bool:
        return self.pool(handle.pool).valid(handle)

    def clear(self) -> None:
        self.flow_vars.clear()
        self.stock_vars.clear()
        logger.debug("arena cleared")

    def nbytes(self) -> int:
        return (len(self.flow_vars) + len(self.stock_vars)) * np.dtype(np.float64).itemsize
