"""Decimal helpers shared by pricing and gateway signing."""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # go through str so floats keep their printed value (0.1 -> "0.1")
    return Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Round half away from zero to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format2(value: Number) -> str:
    """Gateway wire format: always two decimals, e.g. ``10.00``."""
    return f"{round2(value):.2f}"


def format_quantity(value: Number) -> str:
    """Plain quantity text without exponent or trailing zeros (``90``, ``12.5``)."""
    d = to_decimal(value).normalize()
    return format(d, "f")
