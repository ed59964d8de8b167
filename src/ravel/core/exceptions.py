from __future__ import annotations

from typing import Optional, Sequence


class RavelError(Exception):
    """Base class for ravel-specific exceptions."""


class StructuralError(RavelError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        row: Optional[int] = None,
        line_text: Optional[str] = None,
    ):
        detail = _format_location(row, None, line_text)
        super().__init__(f"{message}{detail}")
        self.row = row
        self.line_text = line_text


class DuplicateKeyError(RavelError, ValueError):
    def __init__(self, key: Sequence[str], *, row: Optional[int] = None):
        self.key = tuple(key)
        self.row = row
        message = "Duplicate key" + "".join(f":{label}" for label in self.key)
        super().__init__(f"{message}{_format_location(row, None, None)}")


class ResourceExhausted(RavelError, MemoryError):
    pass


class UnresolvedReference(RavelError, LookupError):
    pass


class CircularDefinition(RavelError, ValueError):
    pass


class InvalidExpression(RavelError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        column: Optional[int] = None,
        line_text: Optional[str] = None,
    ):
        detail = _format_location(None, column, line_text)
        super().__init__(f"{message}{detail}")
        self.column = column
        self.line_text = line_text


class AccessError(RavelError, IndexError):
    pass


def _format_location(
    row: Optional[int],
    column: Optional[int],
    line_text: Optional[str],
) -> str:
    if row is None and column is None:
        return ""
    location = []
    if row is not None:
        location.append(f"row {row}")
    if column is not None:
        location.append(f"col {column}")
    location_str = f" ({', '.join(location)})"
    if line_text is None:
        return location_str
    if column is None or column < 1:
        return f"{location_str}\n  {line_text}"
    caret = " " * (column - 1) + "^"
    return f"{location_str}\n  {line_text}\n  {caret}"
