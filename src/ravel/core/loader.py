from __future__ import annotations

import io
import logging
import math
from typing import IO, TYPE_CHECKING, Dict, List, Optional, Tuple, Union

import numpy as np

from .config import LoadConfig
from .data_spec import DataSpec, DuplicateKeyAction
from .exceptions import DuplicateKeyError, ResourceExhausted, StructuralError
from .hypercube import Hypercube, Key, XVector
from .numeric import is_numerical, normalize_value, parse_value, value_exists
from .tensor import TensorValue
from .tokenizer import strip_cr

if TYPE_CHECKING:
    from .variables import VariableValue

logger = logging.getLogger(__name__)

EXHAUSTED_MEMORY = "exhausted memory - try reducing the rank"

Source = Union[str, IO[str]]


def _open(source: Source) -> IO[str]:
    return io.StringIO(source) if isinstance(source, str) else source


class _KeyReducer:
    """Accumulates one value per key, folding repeats with the duplicate-key policy."""

    def __init__(self, action: DuplicateKeyAction):
        self.action = action
        self.values: Dict[Key, float] = {}
        self._counts: Dict[Key, int] = {}

    def add(self, key: Key, value: float, row: int) -> None:
        old = self.values.get(key)
        if old is None:
            self.values[key] = value
            return
        action = self.action
        if action is DuplicateKeyAction.throw:
            raise DuplicateKeyError(key, row=row)
        if action is DuplicateKeyAction.sum:
            self.values[key] = old + value
        elif action is DuplicateKeyAction.product:
            self.values[key] = old * value
        elif action is DuplicateKeyAction.min:
            self.values[key] = min(old, value)
        elif action is DuplicateKeyAction.max:
            self.values[key] = max(old, value)
        elif action is DuplicateKeyAction.average:
            count = self._counts.get(key, 0)
            self.values[key] = ((count + 1) * old + value) / (count + 2)
            self._counts[key] = count + 1


def _key_fields(fields: List[str], spec: DataSpec) -> Tuple[List[Tuple[int, str]], int]:
    """Axis labels of a row (as (column, label) pairs) and the position of its first value field."""
    labels: List[Tuple[int, str]] = []
    pos = 0
    for col in range(spec.n_col_axes):
        if pos >= len(fields):
            break
        if col in spec.dimension_cols:
            labels.append((col, fields[pos]))
        pos += 1
    return labels, pos


def _is_header(row: int, spec: DataSpec) -> bool:
    return row == spec.header_row and row < spec.n_row_axes


def load_tensor_from_csv(
    source: Source,
    spec: DataSpec,
    *,
    config: Optional[LoadConfig] = None,
) -> TensorValue:
    """Read every data row of ``source`` under ``spec`` into a dense or sparse tensor."""
    cfg = (config or LoadConfig()).normalized()
    tokenize = spec.tokenizer()
    hc = Hypercube(
        XVector(spec.dimension_name(col), spec.dimension_for(col))
        for col in range(spec.n_col_axes)
        if col in spec.dimension_cols
    )
    reducer = _KeyReducer(spec.duplicate_key_action)
    horizontal_labels: List[str] = []
    tabular = False

    try:
        for row, raw in enumerate(_open(source)):
            line = strip_cr(raw)
            if _is_header(row, spec) and not spec.columnar:
                header = tokenize.split(line)
                if len(header) > spec.n_col_axes + 1:
                    tabular = True
                    horizontal_labels = header[spec.n_col_axes:]
                    hc.xvectors.append(
                        XVector(
                            spec.horizontal_dim_name,
                            spec.horizontal_dimension,
                            horizontal_labels,
                        )
                    )
                continue
            if row < spec.n_row_axes:
                continue
            fields = tokenize.split(line)
            if not fields:
                continue

            labels, pos = _key_fields(fields, spec)
            for dim, (_, label) in enumerate(labels):
                try:
                    hc.xvectors[dim].push_back(label)
                except StructuralError as exc:
                    raise StructuralError(str(exc), row=row, line_text=line) from exc
            if pos >= len(fields):
                raise StructuralError("No data columns", row=row, line_text=line)
            key = tuple(label for _, label in labels)

            for col, field in enumerate(fields[pos:]):
                if tabular:
                    if col >= len(horizontal_labels):
                        break
                    cell = key + (horizontal_labels[col],)
                elif col:
                    break  # one value column; anything to the right is ignored
                else:
                    cell = key
                text = normalize_value(field, spec.dec_separator)
                value = parse_value(text) if value_exists(text) else None
                if value is None:
                    if math.isnan(spec.missing_value):
                        continue
                    value = spec.missing_value
                reducer.add(cell, value, row)

        return _materialize(hc, reducer.values, spec, cfg)
    except MemoryError as exc:
        if isinstance(exc, ResourceExhausted):
            raise
        raise ResourceExhausted(EXHAUSTED_MEMORY) from exc


def _materialize(
    hc: Hypercube,
    values: Dict[Key, float],
    spec: DataSpec,
    cfg: LoadConfig,
) -> TensorValue:
    removed = hc.drop_empty_axes()
    if removed:
        values = {
            tuple(label for i, label in enumerate(key) if i not in removed): value
            for key, value in values.items()
        }
    populated = len(values)
    total = hc.num_elements()
    dense = populated > 0 and 2 * populated >= total
    logger.debug(
        "populated=%d log(cells)=%.3f dims=%s -> %s",
        populated,
        hc.log_num_elements(),
        hc.dims(),
        "dense" if dense else "sparse",
    )

    nbytes = (total if dense else populated) * np.dtype(np.float64).itemsize
    if not cfg.allows(nbytes):
        raise ResourceExhausted(EXHAUSTED_MEMORY)

    if dense:
        try:
            data = np.full(total, spec.missing_value, dtype=np.float64)
        except (MemoryError, ValueError, OverflowError) as exc:
            raise ResourceExhausted(EXHAUSTED_MEMORY) from exc
        for key, value in values.items():
            data[hc.offset(key)] = value
        return TensorValue(hc, data)

    pairs = sorted(
        (hc.offset(key), value) for key, value in values.items() if not math.isnan(value)
    )
    return TensorValue(
        hc,
        np.array([value for _, value in pairs], dtype=np.float64),
        index=[offset for offset, _ in pairs],
    )


def load_variable_from_csv(
    variable: "VariableValue",
    source: Source,
    spec: DataSpec,
    *,
    config: Optional[LoadConfig] = None,
) -> TensorValue:
    """Load ``source`` and install it as ``variable``'s literal initial value.

    The variable is only touched once the whole tensor has been built.
    """
    tensor = load_tensor_from_csv(source, spec, config=config)
    variable.set_tensor_init(tensor)
    return tensor


def report_from_csv(source: Source, out: IO[str], spec: DataSpec) -> None:
    """Write an annotated copy of ``source`` flagging rows the loader would reject."""
    tokenize = spec.tokenizer()
    sep = spec.separator
    clean: Dict[Key, str] = {}
    duplicates: Dict[Key, List[str]] = {}

    for row, raw in enumerate(_open(source)):
        line = strip_cr(raw)
        if _is_header(row, spec):
            out.write(f"error{sep}{line}\n")
            continue
        if row < spec.n_row_axes:
            continue
        fields = tokenize.split(line)
        if not fields:
            continue
        labels, pos = _key_fields(fields, spec)
        if pos >= len(fields):
            out.write(f"missing numerical data{sep}{line}\n")
            continue
        invalid = False
        for field in fields[pos:]:
            if field and not is_numerical(field):
                invalid = True
                break
            if spec.columnar:
                break  # only one column to check
        if invalid:
            out.write(f"invalid numerical data{sep}{line}\n")
            continue

        key = tuple(label for _, label in labels)
        if key in duplicates:
            duplicates[key].append(line)
        elif key in clean:
            duplicates[key] = [clean.pop(key), line]
        else:
            clean[key] = line

    for key in sorted(duplicates):
        for line in duplicates[key]:
            out.write(f"duplicate key{sep}{line}\n")
    for key in sorted(clean):
        out.write(f"{sep}{clean[key]}\n")
