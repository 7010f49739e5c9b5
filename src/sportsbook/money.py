"""Fixed-precision money and odds arithmetic (Decimal, round-half-up)."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any, Iterable

from pydantic import BeforeValidator, PlainSerializer

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str to Decimal. Floats go through str() so 1.4 stays 1.4."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a money amount")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"cannot convert {type(value).__name__} to Decimal")


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce(value: Any) -> Decimal:
    """Field validator: report bad input as ValueError so pydantic wraps it."""
    try:
        result = to_decimal(value)
    except (TypeError, InvalidOperation) as e:
        raise ValueError(f"invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"amount must be finite: {value!r}")
    return result


def product(values: Iterable[Any]) -> Decimal:
    """Exact Decimal product (1 for an empty iterable)."""
    result = ONE
    for v in values:
        result *= to_decimal(v)
    return result


def money_sum(values: Iterable[Any]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)


# Pydantic field type: accepts float/int/str, stored as Decimal, dumped as string in JSON mode
Money = Annotated[
    Decimal,
    BeforeValidator(_coerce),
    PlainSerializer(lambda d: str(d), return_type=str, when_used="json"),
]
