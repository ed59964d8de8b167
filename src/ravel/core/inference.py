"""Schema inference for delimited text of unknown layout.

Only a bounded prefix of the input is examined. The outcome is a
:class:`DataSpec` describing the separator, how many leading rows and
columns hold axis labels, and the type of each axis column.
"""

from __future__ import annotations

import io
import json
import logging
import re
from itertools import islice
from typing import IO, List, Optional, Sequence, Union

from .config import DEFAULT_MAX_ROWS_TO_ANALYSE
from .data_spec import DataSpec
from .dimension import NamedDimension, classify
from .exceptions import StructuralError
from .numeric import empty_tail, first_numerical

logger = logging.getLogger(__name__)

RAVEL_METADATA_RE = re.compile(r"RavelHypercube=(.*)", re.DOTALL)

Source = Union[str, IO[str]]


def sample_lines(source: Source, max_rows: int = DEFAULT_MAX_ROWS_TO_ANALYSE) -> List[str]:
    stream = io.StringIO(source) if isinstance(source, str) else source
    return [line.rstrip("\n") for line in islice(stream, max_rows)]


def guess_separator(lines: Sequence[str]) -> str:
    rows = len(lines)
    commas = sum(line.count(",") for line in lines)
    semicolons = sum(line.count(";") for line in lines)
    tabs = sum(line.count("\t") for line in lines)
    if commas > 0.9 * rows and commas > semicolons and commas > tabs:
        return ","
    if semicolons > 0.9 * rows and semicolons > tabs:
        return ";"
    if tabs > 0.9 * rows:
        return "\t"
    return " "


def guess_from_stream(
    source: Source,
    spec: Optional[DataSpec] = None,
    *,
    max_rows: int = DEFAULT_MAX_ROWS_TO_ANALYSE,
) -> DataSpec:
    """Infer a :class:`DataSpec` from the first ``max_rows`` lines of ``source``.

    ``spec`` carries caller settings (escape, quote, decimal separator,
    missing value, duplicate policy) that inference leaves alone.
    """
    spec = spec if spec is not None else DataSpec()
    lines = sample_lines(source, max_rows)
    guess_remainder(spec, lines, guess_separator(lines))
    if not spec.dimension_names or not any(spec.dimension_names):
        guess_dimensions_from_stream(spec, lines)
    return spec


def guess_remainder(spec: DataSpec, lines: Sequence[str], separator: str) -> DataSpec:
    """Fix axis geometry for a chosen separator.

    The heuristics count non-blank lines only; the resulting ``n_row_axes``
    and ``header_row`` are mapped back to physical line numbers, which is
    what the loader counts.
    """
    spec.separator = separator
    tokenize = spec.tokenizer()
    rows: List[int] = []
    starts: List[int] = []
    valued: List[bool] = []
    n_cols = 0
    first_empty: Optional[int] = None
    spec.dimension_cols = set()
    n_row_axes = 0

    for row, raw in enumerate(lines):
        fields = tokenize(raw)
        if not fields:
            continue
        match = RAVEL_METADATA_RE.fullmatch(fields[0])
        if match:
            populate_from_ravel_metadata(spec, match.group(1), row)
            return spec
        start = first_numerical(fields)
        rows.append(row)
        starts.append(start)
        valued.append(start < len(fields) and not empty_tail(fields, start))
        n_cols = max(n_cols, len(fields))
        if start == len(fields):
            # no numerical tail at all: treat as part of the header block
            n_row_axes = len(starts) - 1
        if first_empty is None and start < n_cols and empty_tail(fields, start):
            first_empty = len(starts) - 1

    average = sum(starts) / len(starts) if starts else 0.0
    while n_row_axes < len(starts) and starts[n_row_axes] > average:
        n_row_axes += 1
    n_col_axes = max(starts[n_row_axes:], default=0)
    if n_row_axes == 0 and n_cols - n_col_axes > 1:
        # header is the first line carrying values; title lines above it are skipped
        n_row_axes = next((i for i, has_values in enumerate(valued) if has_values), 0) + 1
    if first_empty == n_row_axes:
        n_row_axes += 1  # room for a column-axis header line

    if n_row_axes < len(rows):
        spec.n_row_axes = rows[n_row_axes]
    else:
        spec.n_row_axes = rows[-1] + 1 if rows else 0
    spec.n_col_axes = n_col_axes
    spec.header_row = rows[n_row_axes - 1] if n_row_axes > 0 else 0
    spec.dimension_cols = set(range(n_col_axes))
    logger.debug(
        "separator=%r rows=%d n_row_axes=%d n_col_axes=%d header_row=%d",
        separator,
        len(starts),
        spec.n_row_axes,
        spec.n_col_axes,
        spec.header_row,
    )
    return spec


def populate_from_ravel_metadata(spec: DataSpec, metadata: str, row: int) -> DataSpec:
    """Take axis names and types from a ``RavelHypercube=`` line found at ``row``."""
    try:
        payload = json.loads(metadata)
        axes = [NamedDimension.from_dict(item) for item in payload]
    except (ValueError, TypeError) as exc:
        raise StructuralError(
            f"Malformed RavelHypercube metadata: {exc}", row=row, line_text=metadata
        ) from exc
    spec.columnar = True
    spec.header_row = row + 2
    spec.dimension_names = []
    spec.dimensions = []
    spec.set_data_area(spec.header_row, len(axes))
    spec.dimension_names = [axis.name for axis in axes]
    spec.dimensions = [axis.dimension for axis in axes]
    spec.dimension_cols = set(range(len(axes)))
    logger.debug("RavelHypercube metadata at row %d: %d axes", row, len(axes))
    return spec


def guess_dimensions_from_stream(spec: DataSpec, lines: Sequence[str]) -> DataSpec:
    """Name the axis columns from the header row and type them from the first data row."""
    tokenize = spec.tokenizer()
    if spec.n_row_axes > 0 and spec.header_row < len(lines):
        spec.dimension_names = tokenize(lines[spec.header_row])
    data: List[str] = []
    for raw in lines[spec.n_row_axes:]:
        data = tokenize(raw)
        if data:
            break
    spec.dimensions = [
        classify(data[col]) for col in range(min(len(data), spec.n_col_axes))
    ]
    logger.debug("axis dimensions: %s", [d.type.value for d in spec.dimensions])
    return spec
