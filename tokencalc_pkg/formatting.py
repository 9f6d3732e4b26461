"""Result and literal formatting.

This module handles:
- Digit grouping for literal whole parts
- Numeric approximations of results at a given precision
- Short display strings for pre-evaluated tokens, with an ellipsis marking
  values that are not shown exactly
"""

from __future__ import annotations

from fractions import Fraction

import mpmath

from .config import OUTPUT_PRECISION, SHORT_TARGET_LENGTH
from .keymaps import ELLIPSIS
from .numeric import Real


def add_commas(digits: str) -> str:
    """Group a run of digits by thousands.

    Args:
        digits: Whole-part digit string (e.g., "1234567")

    Returns:
        Grouped string (e.g., "1,234,567")
    """
    head = len(digits) % 3 or 3
    groups = [digits[:head]]
    groups.extend(digits[i : i + 3] for i in range(head, len(digits), 3))
    return ",".join(groups)


def format_number(value: Real, precision: int = OUTPUT_PRECISION) -> str:
    """Format a value with the given number of significant digits.

    Args:
        value: Value to format
        precision: Number of significant digits (default: OUTPUT_PRECISION)

    Returns:
        Approximate decimal representation, using an exponent when needed
    """
    with mpmath.workdps(precision + 10):
        return mpmath.nstr(mpmath.mpf(str(value.approx(precision + 10))), precision)


def exact_decimal(frac: Fraction, max_digits: int) -> str | None:
    """Exact decimal text for a fraction, if it terminates within max_digits."""
    den = frac.denominator
    twos = fives = 0
    while den % 2 == 0:
        den //= 2
        twos += 1
    while den % 5 == 0:
        den //= 5
        fives += 1
    if den != 1:
        return None
    scale = max(twos, fives)
    scaled = abs(frac.numerator) * 10**scale // frac.denominator
    digits = str(scaled).rjust(scale + 1, "0")
    if scale:
        whole, fraction = digits[:-scale], digits[-scale:]
    else:
        whole, fraction = digits, ""
    if len(whole) + len(fraction) > max_digits:
        return None
    text = whole + ("." + fraction if fraction else "")
    return ("-" if frac < 0 else "") + text


def short_string(value: Real, max_digits: int = SHORT_TARGET_LENGTH) -> str:
    """Short display string for a value.

    Integers and terminating decimals that fit in max_digits are shown
    exactly. Anything else is rounded to max_digits significant digits and
    followed by an ellipsis.
    """
    frac = value.to_fraction()
    if frac is not None:
        exact = exact_decimal(frac, max_digits)
        if exact is not None:
            return exact
    return format_number(value, max_digits) + ELLIPSIS
