"""Recursive-descent evaluation of expression buffers.

Tokens are evaluated directly to ``Real`` values; no parse tree is built.
Grammar, highest precedence first::

    Unary        := Literal | PreEvaluated | "√" ["-"] Unary | const
                  | "(" Expr [")"] | Func Expr [")"]
    Suffix       := Unary { "!" | "²" | "%" }
    Factor       := Suffix [ "^" SignedFactor ]
    SignedFactor := ["-"] Factor
    Term         := SignedFactor { ["×" | "÷"] SignedFactor }
    Expr         := Term { ("+" | "-") (PercentTerm | Term) }

Function keys carry their own open parenthesis. Missing close parentheses
at the end of the input are tolerated.

Every production returns the index of the first unconsumed token together
with the value. Syntax problems raise ``ExprSyntaxError``; arithmetic domain
errors raised by ``Real`` propagate unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import keymaps
from .config import MAX_EVAL_DEPTH
from .expr import ExpressionBuffer
from .logging_config import get_logger
from .numeric import E, ONE, ONE_HUNDREDTH, PI, RADIANS_PER_DEGREE, Real
from .tokens import Literal, Operator, PreEvaluated
from .types import EvalContext, ExprSyntaxError

logger = get_logger("evaluator")


@dataclass
class EvalRet:
    pos: int
    value: Real


class _Evaluator:
    """Evaluation state for one pass over one buffer."""

    def __init__(self, expr: ExpressionBuffer, context: EvalContext):
        self.expr = expr
        self.context = context
        self.depth = 0

    def _token(self, i: int):
        if i >= self.context.prefix_length:
            raise ExprSyntaxError("Unexpected expression end")
        return self.expr[i]

    def _is_operator(self, i: int, op: int) -> bool:
        if i >= self.context.prefix_length:
            return False
        token = self.expr[i]
        return isinstance(token, Operator) and token.id == op

    def _to_radians(self, x: Real) -> Real:
        if self.context.degree_mode:
            return x.multiply(RADIANS_PER_DEGREE)
        return x

    def _from_radians(self, x: Real) -> Real:
        if self.context.degree_mode:
            return x.divide(RADIANS_PER_DEGREE)
        return x

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_EVAL_DEPTH:
            raise ExprSyntaxError("Expression nested too deeply")

    def _eval_parenthesized(self, i: int) -> EvalRet:
        """Evaluate an Expr starting at i, consuming a closing paren if present."""
        ret = self.eval_expr(i)
        if self._is_operator(ret.pos, keymaps.RPAREN):
            ret.pos += 1
        return ret

    def eval_unary(self, i: int) -> EvalRet:
        self._enter()
        try:
            return self._eval_unary(i)
        finally:
            self.depth -= 1

    def _eval_unary(self, i: int) -> EvalRet:
        token = self._token(i)
        if isinstance(token, Literal):
            return EvalRet(i + 1, token.to_real())
        if isinstance(token, PreEvaluated):
            return EvalRet(i + 1, token.value)

        op = token.id
        if op == keymaps.CONST_PI:
            return EvalRet(i + 1, PI)
        if op == keymaps.CONST_E:
            return EvalRet(i + 1, E)
        if op == keymaps.OP_SQRT:
            # Binds tighter than anything else, but accepts a leading minus.
            if self._is_operator(i + 1, keymaps.OP_SUB):
                arg = self.eval_unary(i + 2)
                return EvalRet(arg.pos, arg.value.negate().sqrt())
            arg = self.eval_unary(i + 1)
            return EvalRet(arg.pos, arg.value.sqrt())
        if op == keymaps.LPAREN:
            return self._eval_parenthesized(i + 1)
        if not keymaps.is_func(op):
            raise ExprSyntaxError("Unrecognized token in expression")

        arg = self._eval_parenthesized(i + 1)
        x = arg.value
        if op == keymaps.FUN_SIN:
            result = self._to_radians(x).sin()
        elif op == keymaps.FUN_COS:
            result = self._to_radians(x).cos()
        elif op == keymaps.FUN_TAN:
            x = self._to_radians(x)
            result = x.sin().divide(x.cos())
        elif op == keymaps.FUN_LN:
            result = x.ln()
        elif op == keymaps.FUN_EXP:
            result = x.exp()
        elif op == keymaps.FUN_LOG:
            result = x.log10()
        elif op == keymaps.FUN_ARCSIN:
            result = self._from_radians(x.asin())
        elif op == keymaps.FUN_ARCCOS:
            result = self._from_radians(x.acos())
        else:
            result = self._from_radians(x.atan())
        return EvalRet(arg.pos, result)

    def eval_suffix(self, i: int) -> EvalRet:
        ret = self.eval_unary(i)
        pos, value = ret.pos, ret.value
        while True:
            if self._is_operator(pos, keymaps.OP_FACT):
                value = value.fact()
            elif self._is_operator(pos, keymaps.OP_SQR):
                value = value.multiply(value)
            elif self._is_operator(pos, keymaps.OP_PCT):
                value = value.multiply(ONE_HUNDREDTH)
            else:
                break
            pos += 1
        return EvalRet(pos, value)

    def eval_factor(self, i: int) -> EvalRet:
        ret = self.eval_suffix(i)
        if not self._is_operator(ret.pos, keymaps.OP_POW):
            return ret
        self._enter()
        try:
            exponent = self.eval_signed_factor(ret.pos + 1)
        finally:
            self.depth -= 1
        return EvalRet(exponent.pos, ret.value.pow(exponent.value))

    def eval_signed_factor(self, i: int) -> EvalRet:
        negative = self._is_operator(i, keymaps.OP_SUB)
        ret = self.eval_factor(i + 1 if negative else i)
        if negative:
            ret.value = ret.value.negate()
        return ret

    def _can_start_factor(self, i: int) -> bool:
        if i >= self.context.prefix_length:
            return False
        token = self.expr[i]
        if not isinstance(token, Operator):
            return True
        if keymaps.is_binary(token.id):
            return False
        return token.id not in (keymaps.OP_FACT, keymaps.RPAREN)

    def eval_term(self, i: int) -> EvalRet:
        ret = self.eval_signed_factor(i)
        pos, value = ret.pos, ret.value
        while True:
            is_mul = self._is_operator(pos, keymaps.OP_MUL)
            is_div = self._is_operator(pos, keymaps.OP_DIV)
            if not (is_mul or is_div or self._can_start_factor(pos)):
                break
            if is_mul or is_div:
                pos += 1
            ret = self.eval_signed_factor(pos)
            value = value.divide(ret.value) if is_div else value.multiply(ret.value)
            pos = ret.pos
        return EvalRet(pos, value)

    def _is_percent(self, pos: int) -> bool:
        """Is pos an operand followed by % and then by +, -, ) or the end?

        Such a percentage is taken relative to the running total.
        """
        prefix = self.context.prefix_length
        if pos + 2 > prefix or not self._is_operator(pos + 1, keymaps.OP_PCT):
            return False
        if isinstance(self.expr[pos], Operator):
            return False
        if pos + 2 == prefix:
            return True
        following = self.expr[pos + 2]
        return isinstance(following, Operator) and following.id in (
            keymaps.OP_ADD,
            keymaps.OP_SUB,
            keymaps.RPAREN,
        )

    def _percent_factor(self, pos: int, is_subtraction: bool) -> EvalRet:
        """The (1 ± N/100) multiplier for an N% operand at pos."""
        ret = self.eval_unary(pos)
        value = ret.value.negate() if is_subtraction else ret.value
        return EvalRet(pos + 2, ONE.add(value.multiply(ONE_HUNDREDTH)))

    def eval_expr(self, i: int) -> EvalRet:
        ret = self.eval_term(i)
        pos, value = ret.pos, ret.value
        while True:
            is_plus = self._is_operator(pos, keymaps.OP_ADD)
            if not is_plus and not self._is_operator(pos, keymaps.OP_SUB):
                break
            if self._is_percent(pos + 1):
                ret = self._percent_factor(pos + 1, not is_plus)
                value = value.multiply(ret.value)
            else:
                ret = self.eval_term(pos + 1)
                value = value.add(ret.value) if is_plus else value.subtract(ret.value)
            pos = ret.pos
        return EvalRet(pos, value)


def evaluate_prefix(expr: ExpressionBuffer, context: EvalContext) -> EvalRet:
    """Evaluate the first context.prefix_length tokens.

    Returns the position after the last consumed token, which may be short
    of the prefix length.
    """
    try:
        return _Evaluator(expr, context).eval_expr(0)
    except (IndexError, RecursionError) as e:
        raise ExprSyntaxError("Unexpected expression end") from e


def evaluate(expr: ExpressionBuffer, degree_mode: bool = False) -> Real:
    """Evaluate a buffer, ignoring any trailing binary operators.

    Args:
        expr: Buffer to evaluate (must not be edited concurrently)
        degree_mode: Interpret trig arguments and results in degrees

    Returns:
        Value of the expression

    Raises:
        ExprSyntaxError: The buffer is empty, incomplete, or malformed
        EvalArithmeticError: The value is undefined (division by zero etc.)
    """
    prefix_length = expr.trailing_binary_ops_start()
    ret = evaluate_prefix(expr, EvalContext(degree_mode, prefix_length))
    if ret.pos != prefix_length:
        logger.debug(f"Parsed {ret.pos} of {prefix_length} tokens in {expr!r}")
        raise ExprSyntaxError("Failed to parse full expression")
    return ret.value
