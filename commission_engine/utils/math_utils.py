"""
Numeric Policy Utilities.

Shared conventions for every calculator:

- Money is ``Decimal`` at full precision; rounding happens only when a
  value is presented (:func:`round_currency`, :func:`format_currency`).
- Division by zero yields ``Decimal("0")`` (:func:`safe_divide`).
- User-entered numbers go through :func:`coerce_amount`, which turns
  invalid or negative input into zero unless strict mode is on.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

__all__: list[str] = [
    "NumberLike",
    "coerce_amount",
    "format_currency",
    "round_currency",
    "safe_divide",
    "to_decimal",
]

NumberLike = Union[Decimal, int, float, str, None]

_ZERO: Decimal = Decimal("0")
_CENT: Decimal = Decimal("0.01")


def _validate_finite(value: Decimal, name: str) -> None:
    """Raise ``ValueError`` if *value* is NaN or +/-Inf."""
    if value.is_nan() or value.is_infinite():
        raise ValueError(f"{name} must be a finite number, got {value!r}.")


def to_decimal(value: NumberLike) -> Decimal:
    """Convert *value* to ``Decimal`` without losing the float's printed form.

    ``None`` and the empty string become zero.  Floats go through ``str``
    so ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        ValueError: If *value* is not numeric or not finite.
    """
    if value is None or value == "":
        return _ZERO
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a numeric amount: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric amount: {value!r}") from exc
    _validate_finite(result, "amount")
    return result


def coerce_amount(value: NumberLike, *, strict: bool = False, name: str = "amount") -> Decimal:
    """Boundary coercion for user-entered amounts and percentages.

    In permissive mode (the default) non-numeric, non-finite and negative
    values become ``Decimal("0")``.  In strict mode they raise.

    Args:
        value: Raw input.
        strict: Raise ``ValueError`` instead of coercing.
        name: Field name used in the error message.

    Raises:
        ValueError: Only when *strict* is ``True`` and the value is invalid.
    """
    try:
        result = to_decimal(value)
    except ValueError:
        if strict:
            raise ValueError(f"{name} must be numeric, got {value!r}.") from None
        return _ZERO
    if result < 0:
        if strict:
            raise ValueError(f"{name} must not be negative, got {value!r}.")
        return _ZERO
    return result


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero when *denominator* is zero."""
    if denominator == 0:
        return _ZERO
    return numerator / denominator


def round_currency(value: Decimal) -> Decimal:
    """Round to cents, half-up, for display or persistence."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal) -> str:
    """Format as Brazilian Real, e.g. ``R$ 12.790,00`` or ``-R$ 500,00``."""
    rounded = round_currency(value)
    sign = "-" if rounded < 0 else ""
    integer_part, _, cents = f"{abs(rounded):.2f}".partition(".")
    groups: list[str] = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return f"{sign}R$ {'.'.join(groups)},{cents}"
