"""Expression tokens.

A token is one of three variants:

- ``Literal``: a numeric constant still being typed (mutable)
- ``Operator``: a reference to an operator, function, or constant key
- ``PreEvaluated``: a frozen earlier result together with the expression
  that produced it

``TokenKind`` values are the variant tags used by serialization.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from . import keymaps
from .config import MAX_EXPONENT_MAGNITUDE
from .formatting import add_commas
from .numeric import Real
from .types import EvalContext, ExprSyntaxError

if TYPE_CHECKING:
    from .expr import ExpressionBuffer


class TokenKind:
    CONSTANT = 0
    OPERATOR = 1
    PRE_EVAL = 2


@dataclass
class Literal:
    """A numeric constant under construction, as typed."""

    whole: str = ""
    fraction: str = ""
    saw_decimal: bool = False
    exponent: int = 0

    kind = TokenKind.CONSTANT

    @property
    def is_empty(self) -> bool:
        return not self.saw_decimal and not self.whole

    def add(self, key_id: int) -> bool:
        """Append a digit or decimal point. Returns False if rejected."""
        if key_id == keymaps.DEC_POINT:
            if self.saw_decimal or self.exponent != 0:
                return False
            self.saw_decimal = True
            return True
        digit = keymaps.dig_val(key_id)
        if digit is None:
            raise ValueError(f"Not a constant key: {key_id}")
        if self.exponent != 0:
            if abs(self.exponent) > MAX_EXPONENT_MAGNITUDE:
                return False
            if self.exponent > 0:
                self.exponent = 10 * self.exponent + digit
            else:
                self.exponent = 10 * self.exponent - digit
            return True
        if self.saw_decimal:
            self.fraction += str(digit)
        else:
            self.whole += str(digit)
        return True

    def add_exponent(self, exp: int) -> None:
        self.exponent = exp

    def delete(self) -> None:
        """Undo the last add, or drop the last exponent digit.

        Assumes the literal is nonempty. Once the exponent reaches zero it
        can only be restored with add_exponent.
        """
        if self.exponent != 0:
            sign = -1 if self.exponent < 0 else 1
            self.exponent = sign * (abs(self.exponent) // 10)
        elif self.fraction:
            self.fraction = self.fraction[:-1]
        elif self.saw_decimal:
            self.saw_decimal = False
        else:
            self.whole = self.whole[:-1]

    def to_real(self) -> Real:
        """Exact value of the literal."""
        whole = self.whole
        if not whole:
            if not self.fraction:
                # Decimal point without digits.
                raise ExprSyntaxError("Incomplete number")
            whole = "0"
        num = int(whole + self.fraction)
        den = 10 ** len(self.fraction)
        if self.exponent > 0:
            num *= 10**self.exponent
        elif self.exponent < 0:
            den *= 10 ** (-self.exponent)
        return Real.from_fraction(num, den)

    def copy(self) -> Literal:
        return Literal(self.whole, self.fraction, self.saw_decimal, self.exponent)

    @property
    def description(self) -> str | None:
        return None

    def __str__(self) -> str:
        result = self.whole if self.exponent != 0 else add_commas(self.whole)
        if self.saw_decimal:
            result += "." + self.fraction
        if self.exponent != 0:
            result += f"E{self.exponent}"
        return result


@dataclass(frozen=True)
class Operator:
    """Immutable reference to an operator, function, or constant key."""

    id: int

    kind = TokenKind.OPERATOR

    @property
    def description(self) -> str | None:
        return keymaps.to_descriptive_string(self.id)

    def __str__(self) -> str:
        return keymaps.to_string(self.id)


@dataclass(frozen=True, eq=False)
class PreEvaluated:
    """A previously evaluated subexpression, used as a single token.

    ``expr`` is kept so the value can be recomputed after deserialization;
    it must be treated as read-only. ``short_rep`` is the display text
    computed when the token was created.
    """

    value: Real
    expr: ExpressionBuffer
    context: EvalContext
    short_rep: str

    kind = TokenKind.PRE_EVAL

    def has_ellipsis(self) -> bool:
        return keymaps.ELLIPSIS in self.short_rep

    @property
    def description(self) -> str | None:
        return None

    def __str__(self) -> str:
        return self.short_rep


Token = Union[Literal, Operator, PreEvaluated]
