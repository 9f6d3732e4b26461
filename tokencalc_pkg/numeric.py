"""Exact-or-lazy real numbers backed by SymPy.

``Real`` wraps a SymPy expression and exposes the operations the evaluator
needs. Results stay symbolic (and therefore exact) whenever SymPy can keep
them so: ``sin(pi/6)`` is ``1/2`` and ``sqrt(8)`` is ``2*sqrt(2)``. Numeric
approximations are only computed on demand, to any requested precision.

Every operation returns a new ``Real``. Equality is object identity, which
is what serialization relies on to detect shared sub-results; use
``definitely_equals`` or ``approx_equals`` to compare values.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Any

import sympy as sp

from .config import (
    COMPARE_TOLERANCE,
    FACTORIAL_MAX_BITS,
    MAX_EXACT_EXPONENT,
    NUMERIC_PRECISION,
)
from .types import EvalArithmeticError


def _check_real(expr: sp.Expr) -> sp.Expr:
    """Reject infinite, undefined, and non-real results."""
    if expr.has(sp.zoo, sp.nan, sp.oo, sp.S.NegativeInfinity):
        raise EvalArithmeticError("Undefined result", "DOMAIN_ERROR")
    if expr.is_real is False:
        raise EvalArithmeticError("Result is not a real number", "NON_REAL")
    return expr


class Real:
    """Immutable real number with exact symbolic representation."""

    __slots__ = ("_value",)

    def __init__(self, value: Any):
        if isinstance(value, Real):
            value = value._value
        elif isinstance(value, Fraction):
            value = sp.Rational(value.numerator, value.denominator)
        else:
            value = sp.sympify(value)
        self._value = _check_real(value)

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int = 1) -> Real:
        return cls(sp.Rational(numerator, denominator))

    @property
    def value(self) -> sp.Expr:
        """The underlying SymPy expression."""
        return self._value

    # Classification

    @property
    def is_rational(self) -> bool:
        return self._value.is_rational is True

    @property
    def is_integer(self) -> bool:
        return self._value.is_integer is True

    def to_fraction(self) -> Fraction | None:
        """Return the exact rational value, or None if not a known rational."""
        if isinstance(self._value, sp.Rational):
            return Fraction(int(self._value.p), int(self._value.q))
        return None

    def definitely_zero(self) -> bool:
        return self._value.is_zero is True

    def signum(self) -> int:
        """Sign of the value; falls back to a high-precision approximation."""
        v = self._value
        if v.is_zero:
            return 0
        if v.is_positive:
            return 1
        if v.is_negative:
            return -1
        approx = sp.re(sp.N(v, NUMERIC_PRECISION))
        if abs(approx) < COMPARE_TOLERANCE:
            return 0
        return 1 if approx > 0 else -1

    def definitely_equals(self, other: Any) -> bool:
        diff = self._value - _coerce(other)._value
        if diff.is_zero is not None:
            return bool(diff.is_zero)
        return sp.simplify(diff).is_zero is True

    def approx_equals(self, other: Any, tolerance: float = COMPARE_TOLERANCE) -> bool:
        diff = sp.N(self._value - _coerce(other)._value, NUMERIC_PRECISION)
        return bool(abs(diff) < tolerance)

    def approx(self, digits: int = NUMERIC_PRECISION) -> sp.Float:
        """Numeric approximation with ``digits`` significant digits."""
        return sp.re(sp.N(self._value, digits))

    def to_float(self) -> float:
        return float(self.approx(17))

    def __float__(self) -> float:
        return self.to_float()

    # Arithmetic

    def add(self, other: Any) -> Real:
        return Real(self._value + _coerce(other)._value)

    def subtract(self, other: Any) -> Real:
        return Real(self._value - _coerce(other)._value)

    def multiply(self, other: Any) -> Real:
        return Real(self._value * _coerce(other)._value)

    def divide(self, other: Any) -> Real:
        other = _coerce(other)
        if other.signum() == 0:
            raise EvalArithmeticError("Division by zero", "DIVISION_BY_ZERO")
        return Real(self._value / other._value)

    def inverse(self) -> Real:
        return ONE.divide(self)

    def negate(self) -> Real:
        return Real(-self._value)

    def pow(self, expon: Any) -> Real:
        """Return self ^ expon.

        Negative bases are only accepted with integral exponents. Integral
        exponents above MAX_EXACT_EXPONENT leave the power unevaluated so it
        can still be approximated without expanding it.
        """
        expon = _coerce(expon)
        exp_value = expon._value
        if exp_value.is_zero:
            return Real(sp.Integer(1))
        sign = self.signum()
        if sign == 0:
            if expon.signum() < 0:
                raise EvalArithmeticError("Division by zero", "DIVISION_BY_ZERO")
            return Real(sp.Integer(0))
        if exp_value.is_integer:
            if abs(exp_value) > MAX_EXACT_EXPONENT:
                return Real(sp.Pow(self._value, exp_value, evaluate=False))
            return Real(sp.Pow(self._value, exp_value))
        if sign < 0:
            raise EvalArithmeticError(
                "Negative base for pow() with non-integer exponent", "NON_REAL"
            )
        return Real(sp.Pow(self._value, exp_value))

    def sqrt(self) -> Real:
        sign = self.signum()
        if sign < 0:
            raise EvalArithmeticError("Square root of negative number", "NON_REAL")
        if sign == 0:
            return ZERO
        return Real(sp.sqrt(self._value))

    # Transcendental functions

    def sin(self) -> Real:
        return Real(sp.sin(self._value))

    def cos(self) -> Real:
        return Real(sp.cos(self._value))

    def tan(self) -> Real:
        return self.sin().divide(self.cos())

    def _check_asin_domain(self) -> None:
        if Real(sp.Abs(self._value) - 1).signum() > 0:
            raise EvalArithmeticError("Inverse trig argument out of range")

    def asin(self) -> Real:
        self._check_asin_domain()
        return Real(sp.asin(self._value))

    def acos(self) -> Real:
        self._check_asin_domain()
        return Real(sp.acos(self._value))

    def atan(self) -> Real:
        return Real(sp.atan(self._value))

    def _check_log_domain(self) -> None:
        if self.signum() <= 0:
            raise EvalArithmeticError("Logarithm of non-positive number")

    def ln(self) -> Real:
        self._check_log_domain()
        return Real(sp.log(self._value))

    def log10(self) -> Real:
        # Two-argument log recognizes exact powers of ten.
        self._check_log_domain()
        return Real(sp.log(self._value, 10))

    def exp(self) -> Real:
        return Real(sp.exp(self._value))

    def fact(self) -> Real:
        """Factorial.

        Fails if the argument is clearly not an integer. Values within
        COMPARE_TOLERANCE of an integer are rounded to it.
        """
        if self._value.is_integer:
            n = int(self._value)
        else:
            approx = self.approx()
            n = int(sp.floor(approx + sp.Rational(1, 2)))
            if not self.approx_equals(n):
                raise EvalArithmeticError(
                    "Non-integral factorial argument", "FACTORIAL_ERROR"
                )
        if n < 0:
            raise EvalArithmeticError("Negative factorial argument", "FACTORIAL_ERROR")
        if n.bit_length() > FACTORIAL_MAX_BITS:
            raise EvalArithmeticError("Factorial argument too big", "FACTORIAL_ERROR")
        return Real(sp.factorial(n))

    def __repr__(self) -> str:
        return f"Real({self._value})"

    def __str__(self) -> str:
        return str(self._value)


def _coerce(value: Any) -> Real:
    return value if isinstance(value, Real) else Real(value)


ZERO = Real(0)
ONE = Real(1)
TEN = Real(10)
PI = Real(sp.pi)
E = Real(sp.E)
ONE_HUNDREDTH = Real(sp.Rational(1, 100))
RADIANS_PER_DEGREE = Real(sp.pi / 180)
