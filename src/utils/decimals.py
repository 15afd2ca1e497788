#!/usr/bin/env python3
"""
Fixed-precision decimal helpers.

Numeric sales columns are held as ``decimal.Decimal`` objects so that
sums and ratios match what a SQL ``NUMERIC(p, s)`` column would produce.
Rounding is half away from zero throughout.

Usage
-----
    from utils.decimals import to_decimal, fit_decimal, round_half_up

    value = fit_decimal(to_decimal(' 1234.567 '), precision=20, scale=2)
    # Decimal('1234.57')
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

import pandas as pd


ZERO = Decimal(0)
HUNDRED = Decimal(100)


def is_missing(value) -> bool:
    """True for None, NaN, pd.NA and NaT."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_decimal(value) -> Optional[Decimal]:
    """
    Parse a raw cell value into a Decimal.

    Parameters
    ----------
    value : object
        Text, int, float or Decimal. Surrounding whitespace is ignored.

    Returns
    -------
    Decimal or None
        None when the value is absent (None, NaN or blank text)

    Raises
    ------
    ValueError
        If the value is not a finite number
    """
    if is_missing(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"boolean is not numeric: {value!r}")
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = value.strip() if isinstance(value, str) else str(value)
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not numeric: {value!r}") from None
    if not parsed.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return parsed


def quantum(scale: int) -> Decimal:
    """Smallest step at the given number of fraction digits."""
    return Decimal(1).scaleb(-scale)


def round_half_up(value: Optional[Decimal], digits: int = 0) -> Optional[Decimal]:
    """Round to ``digits`` fraction digits, half away from zero. None passes through."""
    if value is None:
        return None
    return value.quantize(quantum(digits), rounding=ROUND_HALF_UP)


def fit_decimal(value: Optional[Decimal], precision: int, scale: int) -> Optional[Decimal]:
    """
    Round a value to ``scale`` and check it fits ``precision`` total digits.

    Raises
    ------
    OverflowError
        If the rounded value needs more than ``precision - scale`` integer digits
    """
    if value is None:
        return None
    int_digits = precision - scale
    if value != 0 and value.adjusted() >= int_digits:
        raise OverflowError(f"exceeds NUMERIC({precision},{scale})")
    rounded = round_half_up(value, scale)
    if rounded != 0 and rounded.adjusted() >= int_digits:
        raise OverflowError(f"exceeds NUMERIC({precision},{scale}) after rounding")
    return rounded


def safe_divide(numerator: Optional[Decimal], denominator: Optional[Decimal]) -> Optional[Decimal]:
    """Divide, returning None when either side is absent or the denominator is zero."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator


def decimal_sum(values: Iterable) -> Optional[Decimal]:
    """SQL-style SUM: nulls ignored, None when nothing is left."""
    present = [v for v in values if not is_missing(v)]
    if not present:
        return None
    return sum(present, ZERO)


def decimal_mean(values: Iterable) -> Optional[Decimal]:
    """SQL-style AVG over non-null values."""
    present = [v for v in values if not is_missing(v)]
    if not present:
        return None
    return sum(present, ZERO) / len(present)
