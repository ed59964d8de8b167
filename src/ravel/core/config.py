from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MemoryBudget = Callable[[int], bool]

DEFAULT_MAX_ROWS_TO_ANALYSE = 100


def byte_limit(max_bytes: int) -> MemoryBudget:
    """Return a budget predicate admitting allocations of at most ``max_bytes``."""

    limit = int(max_bytes)

    def _allows(nbytes: int) -> bool:
        return int(nbytes) <= limit

    return _allows


@dataclass
class LoadConfig:
    """
    Switches shared by schema inference, loading and the simulation state.

    * ``max_rows_to_analyse`` bounds the prefix sampled by inference.
    * ``memory_budget`` is a caller-supplied predicate (bytes -> allowed);
      ``max_bytes`` is shorthand for :func:`byte_limit`. When both are given
      an allocation must satisfy both.
    * ``seed`` seeds the ``rand`` generator afresh on every reset.
    """

    max_rows_to_analyse: int = DEFAULT_MAX_ROWS_TO_ANALYSE
    memory_budget: Optional[MemoryBudget] = None
    max_bytes: Optional[int] = None
    seed: Optional[int] = None

    def normalized(self) -> "LoadConfig":
        rows = int(self.max_rows_to_analyse)
        if rows <= 0:
            raise ValueError("max_rows_to_analyse must be positive")
        max_bytes = self.max_bytes
        if max_bytes is not None:
            max_bytes = int(max_bytes)
            if max_bytes < 0:
                raise ValueError("max_bytes must be non-negative when provided")
        budget = self.memory_budget
        if budget is not None and not callable(budget):
            raise ValueError("memory_budget must be callable")
        seed = self.seed
        if seed is not None:
            seed = int(seed)
        return LoadConfig(
            max_rows_to_analyse=rows,
            memory_budget=budget,
            max_bytes=max_bytes,
            seed=seed,
        )

    def allows(self, nbytes: int) -> bool:
        if self.max_bytes is not None and not byte_limit(self.max_bytes)(nbytes):
            logger.warning("allocation of %d bytes exceeds max_bytes=%d", nbytes, self.max_bytes)
            return False
        if self.memory_budget is not None and not self.memory_budget(int(nbytes)):
            logger.warning("allocation of %d bytes refused by memory budget", nbytes)
            return False
        return True
