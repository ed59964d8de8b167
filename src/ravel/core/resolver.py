from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Optional, Sequence, Set

import numpy as np

from .exceptions import CircularDefinition, InvalidExpression, UnresolvedReference
from .hypercube import Hypercube
from .init_expr import parse_init
from .tensor import TensorValue
from .variables import scope_for, value_id_from_scope

if TYPE_CHECKING:
    from .variables import VariableValue, VariableValues


def _iota(out: np.ndarray, dims: Sequence[int], rng: np.random.Generator) -> None:
    out[:] = np.arange(out.size, dtype=np.float64)


def _one(out: np.ndarray, dims: Sequence[int], rng: np.random.Generator) -> None:
    out[:] = 1.0


def _zero(out: np.ndarray, dims: Sequence[int], rng: np.random.Generator) -> None:
    out[:] = 0.0


def _eye(out: np.ndarray, dims: Sequence[int], rng: np.random.Generator) -> None:
    out[:] = 0.0
    if not dims:
        out[0] = 1.0
        return
    stride = 1
    for d in dims[:-1]:
        stride *= d + 1
    for i in range(min(dims)):
        if stride * i < out.size:
            out[stride * i] = 1.0


def _rand(out: np.ndarray, dims: Sequence[int], rng: np.random.Generator) -> None:
    out[:] = rng.random(out.size)


GENERATORS: Dict[str, Callable[[np.ndarray, Sequence[int], np.random.Generator], None]] = {
    "iota": _iota,
    "one": _one,
    "zero": _zero,
    "eye": _eye,
    "rand": _rand,
}


def generate(function: str, dims: Sequence[int], rng: Optional[np.random.Generator] = None) -> TensorValue:
    """Tensor of shape ``dims`` filled by the named generator."""
    fill = GENERATORS.get(function)
    if fill is None:
        raise InvalidExpression(f"Unsupported generator function {function}()")
    hc = Hypercube.from_dims(dims)
    out = np.empty(hc.num_elements(), dtype=np.float64)
    fill(out, dims, rng if rng is not None else np.random.default_rng())
    return TensorValue(hc, out)


def init_value(
    variable: "VariableValue",
    variables: "VariableValues",
    visited: Optional[Set[str]] = None,
    *,
    rng: Optional[np.random.Generator] = None,
) -> TensorValue:
    """Initial value of ``variable``: its literal tensor, or its init expression evaluated.

    Named references are followed recursively; ``visited`` holds the value ids
    already on the resolution path and a repeat raises :class:`CircularDefinition`.
    """
    if variable.tensor_init is not None:
        return variable.tensor_init
    visited = set() if visited is None else visited

    expr = parse_init(variable.init)
    if not expr.name:
        return TensorValue.scalar(expr.coef)
    if expr.is_generator:
        return generate(expr.function, expr.dims, rng).scaled(expr.coef)

    vid = value_id_from_scope(scope_for(variable.scope, expr.name), expr.name)
    if vid in visited:
        raise CircularDefinition(f"circular definition of initial value for {expr.name}")
    target = variables.get(vid)
    if target is None:
        raise UnresolvedReference(
            f"Unknown variable/function {expr.name} in initialisation of {variable.name}"
        )
    visited.add(vid)
    return init_value(target, variables, visited, rng=rng).scaled(expr.coef)
