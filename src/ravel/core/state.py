from __future__ import annotations

import copy
import io
import logging
from pathlib import Path
from typing import IO, Callable, Dict, Optional, Union

import numpy as np

from .arena import ValueArena
from .config import LoadConfig
from .data_spec import DataSpec
from .dimension import Dimension
from .exceptions import UnresolvedReference
from .export import export_as_csv
from .inference import guess_from_stream
from .loader import load_variable_from_csv
from .tensor import TensorValue
from .variables import Group, VariableType, VariableValue, VariableValues

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO[str]]


class SimulationState:
    """
    Variables of one model together with the arena holding their values.

    Everything outside the core talks to it through four requests: load a
    file into a variable, export a variable, reset before a run, and look a
    variable up by scoped name. None of it is thread-safe; callers serialize
    loads and resets.
    """

    def __init__(
        self,
        config: Optional[LoadConfig] = None,
        *,
        defining_var: Optional[Callable[[str], bool]] = None,
    ):
        self.config = (config or LoadConfig()).normalized()
        self.arena = ValueArena()
        self.variables = VariableValues()
        self.dimensions: Dict[str, Dimension] = {}
        self.defining_var = defining_var

    def add_variable(
        self,
        name: str,
        type: VariableType = VariableType.flow,
        *,
        scope: Optional[Group] = None,
        init: str = "0",
        tensor_init: Optional[TensorValue] = None,
    ) -> VariableValue:
        variable = VariableValue(name, type, scope=scope, init=init, tensor_init=tensor_init)
        return self.variables.add(variable)

    def lookup(self, scope: Optional[Group], name: str) -> VariableValue:
        variable = self.variables.find(scope, name)
        if variable is None:
            raise UnresolvedReference(f"Unknown variable {name}")
        return variable

    def _variable(self, name: Union[str, VariableValue], scope: Optional[Group]) -> VariableValue:
        if isinstance(name, VariableValue):
            return name
        return self.lookup(scope, name)

    def load_variable(
        self,
        name: Union[str, VariableValue],
        source: Source,
        spec: Optional[DataSpec] = None,
        *,
        scope: Optional[Group] = None,
    ) -> DataSpec:
        """Load delimited text into a variable's literal initial value.

        ``source`` is a path (``str`` or ``Path``) or an open text stream. Without
        ``spec`` the schema is inferred from the text first; a given spec is
        copied, not modified. Returns the spec actually used.
        """
        variable = self._variable(name, scope)
        text = _read_text(source)
        if spec is None:
            spec = guess_from_stream(io.StringIO(text), max_rows=self.config.max_rows_to_analyse)
        else:
            spec = copy.deepcopy(spec)
        load_variable_from_csv(variable, io.StringIO(text), spec, config=self.config)
        logger.debug("loaded %s: %r", variable.value_id, variable.tensor_init)
        return spec

    def export_variable(
        self,
        name: Union[str, VariableValue],
        target: Union[str, Path, IO[str]],
        comment: str = "",
        *,
        scope: Optional[Group] = None,
    ) -> None:
        variable = self._variable(name, scope)
        if variable.handle is not None and variable.idx_in_range(self.arena):
            tensor = variable.current_tensor(self.arena)
        elif variable.tensor_init is not None:
            tensor = variable.tensor_init
        else:
            tensor = variable.current_tensor(self.arena)
        export_as_csv(tensor, target, comment)

    def reset(self) -> None:
        rng = np.random.default_rng(self.config.seed)
        self.variables.reset(
            self.arena,
            dimensions=self.dimensions,
            defining_var=self.defining_var,
            rng=rng,
        )

    def value(self, name: Union[str, VariableValue], *, scope: Optional[Group] = None) -> np.ndarray:
        return self._variable(name, scope).value(self.arena)

    def pool_bytes(self) -> bytes:
        return (
            self.arena.flow_vars.contents().tobytes()
            + self.arena.stock_vars.contents().tobytes()
        )


def _read_text(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return Path(source).read_text(encoding="utf-8")
    return source.read()
