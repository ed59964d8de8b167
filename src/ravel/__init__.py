from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _load_version

from .core.arena import Handle, ValueArena, ValuePool
from .core.config import LoadConfig, byte_limit
from .core.data_spec import DataSpec, DuplicateKeyAction
from .core.dimension import Dimension, DimensionType, NamedDimension
from .core.exceptions import (
    AccessError,
    CircularDefinition,
    DuplicateKeyError,
    InvalidExpression,
    RavelError,
    ResourceExhausted,
    StructuralError,
    UnresolvedReference,
)
from .core.export import export_as_csv
from .core.hypercube import Hypercube, XVector
from .core.inference import guess_from_stream
from .core.loader import load_tensor_from_csv, load_variable_from_csv, report_from_csv
from .core.resolver import init_value
from .core.state import SimulationState
from .core.tensor import TensorValue
from .core.variables import Group, VariableType, VariableValue, VariableValues

try:
    __version__ = _load_version("ravel-tensor")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "DataSpec",
    "DuplicateKeyAction",
    "Dimension",
    "DimensionType",
    "NamedDimension",
    "XVector",
    "Hypercube",
    "TensorValue",
    "LoadConfig",
    "byte_limit",
    "guess_from_stream",
    "load_tensor_from_csv",
    "load_variable_from_csv",
    "report_from_csv",
    "export_as_csv",
    "Handle",
    "ValuePool",
    "ValueArena",
    "Group",
    "VariableType",
    "VariableValue",
    "VariableValues",
    "init_value",
    "SimulationState",
    "RavelError",
    "StructuralError",
    "DuplicateKeyError",
    "ResourceExhausted",
    "UnresolvedReference",
    "CircularDefinition",
    "InvalidExpression",
    "AccessError",
    "__version__",
]
