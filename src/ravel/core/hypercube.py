from __future__ import annotations

import math
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .dimension import Dimension, DimensionType, NamedDimension
from .exceptions import StructuralError

Key = Tuple[str, ...]


class XVector:
    """One hypercube axis: a name, a dimension and distinct labels in first-seen order."""

    def __init__(
        self,
        name: str,
        dimension: Optional[Dimension] = None,
        labels: Iterable[str] = (),
    ):
        self.name = name
        self.dimension = dimension or Dimension()
        self._labels: List[str] = []
        self._ordinals: Dict[str, int] = {}
        for label in labels:
            self.push_back(label)

    def push_back(self, label: str) -> bool:
        """Append ``label`` unless already present; returns True when added."""
        if label in self._ordinals:
            return False
        try:
            self.dimension.parse(label)
        except ValueError as exc:
            raise StructuralError(
                f"Invalid data: {label} for {self.dimension.type.value} "
                f"dimensioned column: {self.name}"
            ) from exc
        self._ordinals[label] = len(self._labels)
        self._labels.append(label)
        return True

    def ordinal(self, label: str) -> int:
        return self._ordinals[label]

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def named_dimension(self) -> NamedDimension:
        return NamedDimension(self.name, self.dimension)

    def with_dimension(self, dimension: Dimension) -> "XVector":
        clone = XVector(self.name, dimension)
        clone._labels = list(self._labels)
        clone._ordinals = dict(self._ordinals)
        return clone

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __getitem__(self, i: int) -> str:
        return self._labels[i]

    def __contains__(self, label: object) -> bool:
        return label in self._ordinals

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, XVector):
            return NotImplemented
        return (
            self.name == other.name
            and self.dimension == other.dimension
            and self._labels == other._labels
        )

    def __repr__(self) -> str:
        return f"XVector({self.name!r}, {self.dimension.type.value}, size={len(self)})"


class Hypercube:
    def __init__(self, xvectors: Iterable[XVector] = ()):
        self.xvectors: List[XVector] = list(xvectors)

    @classmethod
    def from_dims(cls, dims: Sequence[int]) -> "Hypercube":
        value_dim = Dimension(DimensionType.value)
        return cls(
            XVector(str(i), value_dim, (str(j) for j in range(int(n))))
            for i, n in enumerate(dims)
        )

    @property
    def rank(self) -> int:
        return len(self.xvectors)

    def dims(self) -> List[int]:
        return [len(xv) for xv in self.xvectors]

    def num_elements(self) -> int:
        total = 1
        for n in self.dims():
            total *= n
        return total

    def log_num_elements(self) -> float:
        return sum(math.log(n) if n > 0 else -math.inf for n in self.dims())

    def offset(self, key: Sequence[str]) -> int:
        """Mixed-radix offset of ``key``; axis 0 varies fastest."""
        if len(key) != self.rank:
            raise ValueError(f"key of length {len(key)} does not match rank {self.rank}")
        idx = 0
        for xv, label in zip(reversed(self.xvectors), reversed(tuple(key))):
            idx = idx * len(xv) + xv.ordinal(label)
        return idx

    def unravel(self, offset: int) -> Key:
        labels = []
        for xv in self.xvectors:
            offset, rem = divmod(offset, len(xv))
            labels.append(xv[rem])
        return tuple(labels)

    def drop_empty_axes(self) -> List[int]:
        """Remove zero-length axes in place, returning the positions removed."""
        removed = [i for i, xv in enumerate(self.xvectors) if len(xv) == 0]
        self.xvectors = [xv for xv in self.xvectors if len(xv) > 0]
        return removed

    def named_dimensions(self) -> List[NamedDimension]:
        return [xv.named_dimension() for xv in self.xvectors]

    def copy(self) -> "Hypercube":
        return Hypercube(xv.with_dimension(xv.dimension) for xv in self.xvectors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hypercube):
            return NotImplemented
        return self.xvectors == other.xvectors

    def __repr__(self) -> str:
        return f"Hypercube({self.xvectors!r})"
