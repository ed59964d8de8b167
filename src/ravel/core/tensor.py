from __future__ import annotations

from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from .hypercube import Hypercube, Key


class TensorValue:
    """
    Values laid out over a :class:`Hypercube`.

    Exactly one representation is live: a dense 1-D ``float64`` array of
    ``hypercube.num_elements()`` cells, or a sparse pair of sorted offsets
    (``index``) and matching values. Offsets are mixed-radix with axis 0
    varying fastest, so the dense array is the Fortran-order flattening of
    the shaped tensor.
    """

    def __init__(
        self,
        hypercube: Optional[Hypercube] = None,
        data: Optional[np.ndarray] = None,
        index: Optional[Sequence[int]] = None,
    ):
        self.hypercube = hypercube if hypercube is not None else Hypercube()
        if index is not None:
            idx = np.asarray(index, dtype=np.int64).reshape(-1)
            if idx.size and np.any(np.diff(idx) <= 0):
                raise ValueError("sparse index must be strictly increasing")
            values = np.zeros(idx.size) if data is None else np.asarray(data, dtype=np.float64).reshape(-1)
            if values.size != idx.size:
                raise ValueError(
                    f"sparse tensor has {idx.size} offsets but {values.size} values"
                )
            if idx.size and (idx[0] < 0 or idx[-1] >= self.hypercube.num_elements()):
                raise ValueError("sparse offset outside hypercube")
            self._index: Optional[np.ndarray] = idx
            self._data = values
        else:
            n = self.hypercube.num_elements()
            if data is None:
                values = np.zeros(n)
            else:
                values = np.asarray(data, dtype=np.float64).reshape(-1)
            if values.size != n:
                raise ValueError(f"dense tensor needs {n} values, got {values.size}")
            self._index = None
            self._data = values

    @classmethod
    def scalar(cls, value: float) -> "TensorValue":
        return cls(Hypercube(), np.array([float(value)]))

    @property
    def is_sparse(self) -> bool:
        return self._index is not None

    @property
    def rank(self) -> int:
        return self.hypercube.rank

    @property
    def index(self) -> Tuple[int, ...]:
        if self._index is None:
            return ()
        return tuple(int(i) for i in self._index)

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def size(self) -> int:
        return int(self._data.size)

    def offset_of(self, i: int) -> int:
        """Hypercube offset of the ``i``-th stored value."""
        if self._index is None:
            return int(i)
        return int(self._index[i])

    def items(self) -> Iterator[Tuple[Key, float]]:
        for i, value in enumerate(self._data):
            yield self.hypercube.unravel(self.offset_of(i)), float(value)

    def get(self, key: Sequence[str], default: float = float("nan")) -> float:
        offset = self.hypercube.offset(key)
        if self._index is None:
            return float(self._data[offset])
        pos = int(np.searchsorted(self._index, offset))
        if pos < self._index.size and self._index[pos] == offset:
            return float(self._data[pos])
        return default

    def to_dense(self, fill: float = float("nan")) -> np.ndarray:
        if self._index is None:
            return self._data.copy()
        out = np.full(self.hypercube.num_elements(), fill, dtype=np.float64)
        out[self._index] = self._data
        return out

    def as_array(self, fill: float = float("nan")) -> np.ndarray:
        return self.to_dense(fill).reshape(self.hypercube.dims(), order="F")

    def scaled(self, coef: float) -> "TensorValue":
        if coef == 1:
            return self
        return TensorValue(self.hypercube, self._data * float(coef), self._index)

    def with_hypercube(self, hypercube: Hypercube) -> "TensorValue":
        if hypercube.dims() != self.hypercube.dims():
            raise ValueError("replacement hypercube must keep the same shape")
        return TensorValue(hypercube, self._data, self._index)

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._data)

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, i: int) -> float:
        return float(self._data[i])

    def __repr__(self) -> str:
        kind = "sparse" if self.is_sparse else "dense"
        return f"TensorValue({kind}, dims={self.hypercube.dims()}, size={self.size})"

