from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class EngNotation:
    sci_exp: int = 0
    eng_exp: int = 0


def eng_exp(value: float) -> EngNotation:
    """Scientific exponent of ``value`` and the engineering exponent used to display it."""
    sci = int(math.floor(math.log10(abs(value)))) if value != 0 else 0
    if sci == 3:
        # four-digit magnitudes (years, mostly) read better unscaled
        return EngNotation(sci, 0)
    if sci >= 0:
        return EngNotation(sci, 3 * (sci // 3))
    return EngNotation(sci, 3 * (int((sci + 1) / 3) - 1))


def mantissa(value: float, eng: EngNotation, digits: int = 3) -> str:
    digits = max(digits, 3)
    offset = eng.sci_exp - eng.eng_exp
    if offset == -3:
        width, places = digits + 4, digits + 1
    elif offset == -2:
        width, places = digits + 3, digits
    elif offset in (0, -1):
        width, places = digits + 2, digits - 1
    elif offset == 1:
        width, places = digits + 2, digits - 2
    elif offset in (2, 3):
        width, places = digits + 2, digits - 3
    else:
        return ""
    return f"{value * 10.0 ** (-eng.eng_exp):{width}.{places}f}"


def exp_multiplier(exp: int) -> str:
    return f"×10^{exp}" if exp != 0 else ""


def format_eng(value: float, digits: int = 3) -> str:
    if not math.isfinite(value):
        return str(value)
    eng = eng_exp(value)
    return mantissa(value, eng, digits).strip() + exp_multiplier(eng.eng_exp)
