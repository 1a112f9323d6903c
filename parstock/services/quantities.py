"""
Quantités au dixième.

PAR et stock sont saisis avec une décimale mais stockés en dixièmes entiers
(5.5 -> 55) : les sommes restent exactes, sans dérive 0.1 + 0.2.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

TENTH = Decimal("0.1")
ZERO = Decimal("0.0")

# colonnes par_tenths / qty_tenths : Integer 32 bits
MAX_TENTHS = 2_147_483_647


def _as_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # repr le plus court : 0.15 -> "0.15" et non 0.1499999...
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def round1(value: Any) -> Decimal:
    """
    Arrondi à une décimale, demi-unité loin de zéro (2.25 -> 2.3, -2.25 -> -2.3).

    Toute entrée vide, non numérique, NaN ou infinie vaut 0.0.
    """
    number = _as_decimal(value)
    if number is None or not number.is_finite():
        return ZERO
    try:
        rounded = number.quantize(TENTH, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # hors précision du contexte décimal
        return ZERO
    if rounded.is_zero():
        return ZERO
    return rounded


def to_tenths(value: Any) -> int:
    return int(round1(value).scaleb(1))


def non_negative_tenths(value: Any) -> int:
    return max(0, to_tenths(value))


def from_tenths(tenths: int) -> Decimal:
    return Decimal(int(tenths)).scaleb(-1).quantize(TENTH)


def fits_column(tenths: int) -> bool:
    return 0 <= tenths <= MAX_TENTHS
