from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

# Everything ``strtod`` accepts as a decimal prefix (hex floats excluded).
_FLOAT_PREFIX_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def leading_float(text: str) -> Tuple[float, int]:
    """Parse the longest numeric prefix of ``text``.

    Returns ``(value, chars_consumed)``; raises ``ValueError`` when no prefix
    parses. Leading whitespace is skipped and counted as consumed.
    """
    stripped = text.lstrip()
    skipped = len(text) - len(stripped)
    match = _FLOAT_PREFIX_RE.match(stripped)
    if match is None:
        raise ValueError(f"no numeric prefix in {text!r}")
    return float(match.group(0)), skipped + match.end()


def strip_ws_and_dec_sep(text: str) -> str:
    return "".join(c for c in text if not c.isspace() and c not in ",.")


def quoted_stod(text: str) -> Tuple[float, int]:
    """Like :func:`leading_float`, first removing one matching pair of quote characters."""
    if text and text[0] == text[-1] and not text[0].isalnum():
        value, consumed = leading_float(text[1:])
        return value, consumed + 2
    return leading_float(text)


def is_numerical(text: str) -> bool:
    stripped = strip_ws_and_dec_sep(text)
    try:
        _, consumed = quoted_stod(stripped)
    except ValueError:
        return False
    return consumed == len(stripped)


def first_numerical(fields: Sequence[str]) -> int:
    """Index of the first field after which every non-empty field is numerical."""
    result = 0
    for i, field in enumerate(fields):
        if field and not is_numerical(field):
            result = i + 1
    return result


def empty_tail(fields: Sequence[str], start: int) -> bool:
    return all(not field for field in fields[start:])


def normalize_value(text: str, dec_separator: str = ".") -> str:
    """Map the decimal separator to ``.`` and drop whitespace and grouping characters."""
    out = []
    for c in text:
        if c == dec_separator:
            out.append(".")
        elif not c.isspace() and c not in ".,":
            out.append(c)
    return "".join(out)


def value_exists(normalized: str) -> bool:
    return bool(normalized) and (normalized[0].isdigit() or normalized[0] in "+-.")


def parse_value(normalized: str) -> Optional[float]:
    """Numeric prefix of a normalized value field, ``None`` when it does not parse."""
    try:
        value, _ = leading_float(normalized)
    except ValueError:
        return None
    return value
