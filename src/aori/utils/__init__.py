"""Shared helpers."""

from aori.utils.numbers import AmountLike, check_uint, to_decimal_string, to_int

__all__ = [
    "AmountLike",
    "check_uint",
    "to_decimal_string",
    "to_int",
]
