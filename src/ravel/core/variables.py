from __future__ import annotations

import itertools
import logging
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple

import numpy as np

from .arena import FLOW, STOCK, Handle, ValueArena
from .dimension import Dimension
from .exceptions import AccessError
from .hypercube import Hypercube
from .tensor import TensorValue

logger = logging.getLogger(__name__)

_ZERO = np.zeros(1, dtype=np.float64)
_ZERO.setflags(write=False)


class VariableType(str, Enum):
    flow = "flow"
    tempFlow = "tempFlow"
    constant = "constant"
    parameter = "parameter"
    stock = "stock"
    integral = "integral"
    undefined = "undefined"


_FLOW_TYPES = {
    VariableType.flow,
    VariableType.tempFlow,
    VariableType.constant,
    VariableType.parameter,
}
_STOCK_TYPES = {VariableType.stock, VariableType.integral}


class Group:
    """A named lexical scope. Top-level groups (no parent) share the global namespace."""

    _ids = itertools.count(1)

    def __init__(self, name: str = "", parent: Optional["Group"] = None):
        self.id = next(Group._ids)
        self.name = name
        self.parent = parent
        self._declared: Set[str] = set()

    def declare(self, name: str) -> None:
        self._declared.add(uq_name(name))

    def declares(self, name: str) -> bool:
        return uq_name(name) in self._declared

    def __repr__(self) -> str:
        return f"Group({self.name!r}, id={self.id})"


def uq_name(name: str) -> str:
    """``name`` without any scope qualifier."""
    return name[name.rfind(":") + 1 :]


def value_id(scope_id: Optional[int], name: str) -> str:
    prefix = "" if scope_id is None else str(scope_id)
    return f"{prefix}:{uq_name(name)}"


def value_id_key(vid: str) -> Tuple[int, str]:
    """Sort key for value ids: global names first, then by numeric scope id and name."""
    scope_id, _, name = vid.partition(":")
    return (int(scope_id) if scope_id else 0, name)


def scope_for(scope: Optional[Group], name: str) -> Optional[Group]:
    """Scope a reference to ``name`` made from ``scope`` resolves to.

    A leading ``:`` selects the nearest enclosing group (searched outward from
    ``scope``'s parent) that declares the same name, or the global namespace
    when no group does.
    """
    if not name.startswith(":") or scope is None:
        return scope
    bare = name[1:]
    group = scope.parent
    while group is not None:
        if group.declares(bare):
            return group
        group = group.parent
    return None


def value_id_from_scope(scope: Optional[Group], name: str) -> str:
    if not name or scope is None or scope.parent is None:
        return value_id(None, name)
    return value_id(scope.id, name)


class VariableValue:
    def __init__(
        self,
        name: str,
        type: VariableType = VariableType.flow,
        *,
        scope: Optional[Group] = None,
        init: str = "0",
        tensor_init: Optional[TensorValue] = None,
    ):
        self.name = name
        self.type = VariableType(type)
        self.scope = scope
        self.init = init
        self.tensor_init = tensor_init
        self.hypercube = Hypercube()
        self.index: Optional[Tuple[int, ...]] = None
        self.handle: Optional[Handle] = None
        if scope is not None:
            scope.declare(name)

    @property
    def value_id(self) -> str:
        return value_id_from_scope(self.scope, self.name)

    @property
    def is_flow_var(self) -> bool:
        return self.type in _FLOW_TYPES

    @property
    def pool_name(self) -> Optional[str]:
        if self.type in _FLOW_TYPES:
            return FLOW
        if self.type in _STOCK_TYPES:
            return STOCK
        return None

    @property
    def size(self) -> int:
        return len(self.index) if self.index is not None else self.hypercube.num_elements()

    def set_tensor_init(self, tensor: TensorValue) -> None:
        self.tensor_init = tensor

    def unbind(self) -> None:
        self.handle = None

    def alloc_value(self, arena: ValueArena) -> "VariableValue":
        """Bind a fresh slice; calling twice leaks the first slice until the next reset."""
        pool = self.pool_name
        self.handle = None if pool is None else arena.pool(pool).alloc(self.size)
        return self

    def idx_in_range(self, arena: ValueArena) -> bool:
        if self.type is VariableType.undefined or self.handle is None:
            return True
        return arena.valid(self.handle) and self.handle.size >= self.size

    def val_ref(self, arena: ValueArena) -> np.ndarray:
        """Writable storage of this variable, allocating on first use."""
        if self.handle is None:
            self.alloc_value(arena)
        if self.handle is None:
            raise AccessError(f"invalid access of variable value reference: {self.name}")
        if self.handle.size < self.size:
            raise AccessError(
                f"binding of {self.name} holds {self.handle.size} values, needs {self.size}"
            )
        return arena.view(self.handle)[: self.size]

    def value(self, arena: ValueArena) -> np.ndarray:
        """Read-only path: a shared zero whenever the binding cannot be dereferenced."""
        if self.handle is None or not self.idx_in_range(arena):
            return _ZERO
        return arena.view(self.handle)[: self.size]

    def assign(self, arena: ValueArena, tensor: TensorValue) -> None:
        self.hypercube = tensor.hypercube
        self.index = tensor.index if tensor.is_sparse else None
        if self.handle is None or not self.idx_in_range(arena):
            self.alloc_value(arena)
        self.val_ref(arena)[:] = tensor.data

    def current_tensor(self, arena: ValueArena) -> TensorValue:
        data = np.array(self.value(arena)[: self.size], dtype=np.float64)
        if data.size != self.size:
            data = np.zeros(self.size)
        return TensorValue(self.hypercube, data, self.index)

    def reset(
        self,
        arena: ValueArena,
        variables: "VariableValues",
        *,
        dimensions: Optional[Mapping[str, Dimension]] = None,
        defining_var: Optional[Callable[[str], bool]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        from .resolver import init_value

        self.unbind()
        if self.type is VariableType.undefined:
            return
        if self.is_flow_var and defining_var is not None and defining_var(self.value_id):
            # computed each step by its defining variable; storage only
            self.alloc_value(arena)
            return
        if self.tensor_init is not None and dimensions:
            hc = Hypercube(
                xv.with_dimension(dimensions.get(xv.name, xv.dimension))
                for xv in self.tensor_init.hypercube.xvectors
            )
            self.tensor_init = self.tensor_init.with_hypercube(hc)
        self.assign(arena, init_value(self, variables, rng=rng))

    def __repr__(self) -> str:
        return f"VariableValue({self.value_id!r}, {self.type.value}, size={self.size})"


class VariableValues:
    """All variables of a model, iterated in value-id order (see :func:`value_id_key`)."""

    def __init__(self):
        self._values: Dict[str, VariableValue] = {}

    def add(self, variable: VariableValue) -> VariableValue:
        vid = variable.value_id
        if vid in self._values:
            raise ValueError(f"variable {vid!r} already defined")
        self._values[vid] = variable
        return variable

    def remove(self, vid: str) -> None:
        del self._values[vid]

    def get(self, vid: str) -> Optional[VariableValue]:
        return self._values.get(vid)

    def find(self, scope: Optional[Group], name: str) -> Optional[VariableValue]:
        return self._values.get(value_id_from_scope(scope_for(scope, name), name))

    def __getitem__(self, vid: str) -> VariableValue:
        return self._values[vid]

    def __contains__(self, vid: object) -> bool:
        return vid in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values, key=value_id_key))

    def items(self) -> List[Tuple[str, VariableValue]]:
        return [(vid, self._values[vid]) for vid in self]

    def new_name(self, name: str) -> str:
        for i in itertools.count(1):
            trial = f"{name}{i}"
            if value_id(None, trial) not in self._values:
                return trial
        raise AssertionError("unreachable")  # pragma: no cover

    def valid_entries(self) -> bool:
        return all(v.value_id == vid for vid, v in self._values.items())

    def reset(
        self,
        arena: ValueArena,
        *,
        dimensions: Optional[Mapping[str, Dimension]] = None,
        defining_var: Optional[Callable[[str], bool]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Clear both pools, then rebind and reinitialise every variable."""
        arena.clear()
        for _, variable in self.items():
            variable.reset(
                arena,
                self,
                dimensions=dimensions,
                defining_var=defining_var,
                rng=rng,
            )
        logger.debug(
            "reset %d variables: flow=%d stock=%d",
            len(self._values),
            len(arena.flow_vars),
            len(arena.stock_vars),
        )
