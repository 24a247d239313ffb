"""Exact integer normalization for on-chain amounts.

Every amount that crosses a boundary (request bodies, transaction values,
cross-chain fees, allowances) goes through this module, so no float ever
represents a token amount.

Accepted inputs:
- int
- Decimal (must be integral)
- float (converted through its shortest repr, must be integral)
- base-10 strings ("1000000"), scientific notation ("1.5e18")
- hex strings ("0x38d7ea4c68000")
"""

from decimal import Decimal, InvalidOperation
from typing import Union

AmountLike = Union[int, str, Decimal, float]


def to_int(value: AmountLike) -> int:
    """Convert an amount-like value to an exact non-negative integer.

    Raises:
        ValueError: If the value is not an integral, non-negative amount
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a valid amount: {value!r}")

    if isinstance(value, int):
        result = value
    elif isinstance(value, Decimal):
        result = _decimal_to_int(value, value)
    elif isinstance(value, float):
        # repr() gives the shortest string that round-trips, e.g. 1e21 -> "1e+21"
        result = _decimal_to_int(Decimal(repr(value)), value)
    elif isinstance(value, str):
        result = _str_to_int(value)
    else:
        raise ValueError(f"Unsupported amount type {type(value).__name__}: {value!r}")

    if result < 0:
        raise ValueError(f"Amount must be non-negative: {value!r}")
    return result


def to_decimal_string(value: AmountLike) -> str:
    """Normalize an amount to a plain base-10 integer string."""
    return str(to_int(value))


def check_uint(value: int, bits: int, field: str) -> int:
    """Check that value fits in an unsigned integer of the given width."""
    if value < 0 or value >= 1 << bits:
        raise ValueError(f"{field}={value} does not fit in uint{bits}")
    return value


def _str_to_int(value: str) -> int:
    text = value.strip()
    if not text:
        raise ValueError("Empty string is not a valid amount")

    if text[:2].lower() == "0x":
        try:
            return int(text, 16)
        except ValueError:
            raise ValueError(f"Invalid hex amount: {value!r}") from None

    if text.isdigit():
        return int(text)

    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None
    return _decimal_to_int(number, value)


def _decimal_to_int(number: Decimal, original: object) -> int:
    if not number.is_finite():
        raise ValueError(f"Amount must be finite: {original!r}")
    if number != number.to_integral_value():
        raise ValueError(f"Amount must be an integer in the smallest unit: {original!r}")
    return int(number)
