from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as dateparser

from .numeric import is_numerical, quoted_stod

QUARTER_FORMAT = "%Y-Q%Q"


class DimensionType(str, Enum):
    string = "string"
    time = "time"
    value = "value"


@dataclass(frozen=True)
class Dimension:
    type: DimensionType = DimensionType.string
    units: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "units": self.units}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dimension":
        try:
            kind = DimensionType(str(data.get("type", "string")))
        except ValueError as exc:
            raise ValueError(f"Unknown dimension type: {data.get('type')!r}") from exc
        return cls(kind, str(data.get("units", "") or ""))

    def parse(self, label: str) -> Any:
        """Typed value of ``label`` under this dimension; ``ValueError`` if it does not fit."""
        if self.type is DimensionType.value:
            return parse_label_value(label)
        if self.type is DimensionType.time:
            return parse_time(label, self.units)
        return label


@dataclass(frozen=True)
class NamedDimension:
    name: str
    dimension: Dimension

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dimension": self.dimension.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NamedDimension":
        if not isinstance(data, dict) or "name" not in data:
            raise ValueError(f"Malformed axis descriptor: {data!r}")
        return cls(str(data["name"]), Dimension.from_dict(data.get("dimension") or {}))


def parse_label_value(label: str) -> float:
    text = "".join(c for c in label if not c.isspace() and c != ",")
    value, consumed = quoted_stod(text)
    if consumed != len(text):
        raise ValueError(f"{label!r} is not a number")
    return value


def _format_to_regex(units: str) -> "re.Pattern[str]":
    parts: List[str] = []
    i = 0
    while i < len(units):
        if units[i] == "%" and i + 1 < len(units):
            code = units[i + 1]
            if code == "Y":
                parts.append(r"(?P<Y>\d{4})")
            elif code == "Q":
                parts.append(r"(?P<Q>[1-4])")
            elif code == "m":
                parts.append(r"(?P<m>\d{1,2})")
            elif code == "d":
                parts.append(r"(?P<d>\d{1,2})")
            else:
                raise ValueError(f"Unsupported time format directive %{code} in {units!r}")
            i += 2
        else:
            parts.append(re.escape(units[i]))
            i += 1
    return re.compile("".join(parts))


def parse_time(label: str, units: str = "") -> datetime:
    text = label.strip()
    if units and "%Q" in units:
        match = _format_to_regex(units).fullmatch(text)
        if match is None:
            raise ValueError(f"{label!r} does not match {units!r}")
        fields = match.groupdict()
        year = int(fields["Y"])
        quarter = int(fields["Q"])
        return datetime(year, 3 * (quarter - 1) + 1, 1)
    if units:
        return datetime.strptime(text, units)
    if not any(c.isdigit() for c in text):
        raise ValueError(f"invalid date/time: {label!r}")
    try:
        parsed = dateparser.parse(text)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"invalid date/time: {label!r}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


Classifier = Callable[[str], Optional[Dimension]]


def _classify_value(text: str) -> Optional[Dimension]:
    if is_numerical(text):
        return Dimension(DimensionType.value)
    return None


def _classify_time_with(units: str) -> Classifier:
    def _classify(text: str) -> Optional[Dimension]:
        try:
            parse_time(text, units)
        except ValueError:
            return None
        return Dimension(DimensionType.time, units)

    return _classify


def _classify_string(text: str) -> Optional[Dimension]:
    return Dimension(DimensionType.string)


CLASSIFIERS: List[Classifier] = [
    _classify_value,
    _classify_time_with(QUARTER_FORMAT),
    _classify_time_with(""),
    _classify_string,
]


def classify(text: str) -> Dimension:
    """Dimension of the first classifier in :data:`CLASSIFIERS` accepting ``text``."""
    for classifier in CLASSIFIERS:
        dim = classifier(text)
        if dim is not None:
            return dim
    return Dimension()
