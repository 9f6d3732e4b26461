"""Editable expression buffer.

An ``ExpressionBuffer`` is the ordered token sequence a user builds one
keypress at a time. Only the trailing Literal is ever mutated in place;
Operator and PreEvaluated tokens are immutable and may be shared between
buffers. Buffers held by a PreEvaluated token are read-only snapshots.

The buffer is not synchronized. Callers must not edit it while it is being
evaluated or serialized.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from . import keymaps
from .logging_config import get_logger
from .numeric import Real
from .tokens import Literal, Operator, PreEvaluated, Token
from .types import EvalContext

logger = get_logger("expr")


class ExpressionBuffer:
    """Ordered sequence of tokens plus the edit operations on it."""

    def __init__(self, tokens: Iterable[Token] | None = None):
        self._tokens: list[Token] = list(tokens) if tokens is not None else []

    # Sequence access

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __repr__(self) -> str:
        return f"ExpressionBuffer({self.to_display_string()!r})"

    @property
    def is_empty(self) -> bool:
        return not self._tokens

    def _last(self) -> Token | None:
        return self._tokens[-1] if self._tokens else None

    # Queries

    def is_constant(self) -> bool:
        """True if the buffer is exactly one Literal."""
        return len(self._tokens) == 1 and isinstance(self._tokens[0], Literal)

    def has_trailing_constant(self) -> bool:
        return isinstance(self._last(), Literal)

    def has_trailing_binary(self) -> bool:
        last = self._last()
        return isinstance(last, Operator) and keymaps.is_binary(last.id)

    def trailing_binary_ops_start(self) -> int:
        """Index of the first token of the trailing run of binary operators."""
        result = len(self._tokens)
        while result > 0:
            last = self._tokens[result - 1]
            if not isinstance(last, Operator) or not keymaps.is_binary(last.id):
                break
            result -= 1
        return result

    def has_interesting_ops(self) -> bool:
        """Whether evaluating would show more than what was typed.

        True if the buffer has an operator, or a pre-evaluated token whose
        display is truncated, outside a leading minus and any trailing
        binary operators.
        """
        last = self.trailing_binary_ops_start()
        first = 0
        if last > first and self._is_operator(first, keymaps.OP_SUB):
            first += 1
        for token in self._tokens[first:last]:
            if isinstance(token, Operator):
                return True
            if isinstance(token, PreEvaluated) and token.has_ellipsis():
                return True
        return False

    def has_trig_funcs(self) -> bool:
        return any(
            isinstance(token, Operator) and keymaps.is_trig_func(token.id)
            for token in self._tokens
        )

    def _is_operator(self, index: int, op: int) -> bool:
        token = self._tokens[index]
        return isinstance(token, Operator) and token.id == op

    # Edits

    def add(self, key_id: int) -> bool:
        """Append the token for a keypress.

        Returns False, leaving the buffer unchanged, if the keypress makes no
        sense here: a second decimal point, a binary operator with nothing to
        apply to, or an exponent digit beyond the allowed magnitude.
        """
        last = self._last()
        last_op = last.id if isinstance(last, Operator) else None
        if keymaps.is_binary(key_id) and not keymaps.is_prefix(key_id):
            if (
                last is None
                or last_op == keymaps.LPAREN
                or (last_op is not None and keymaps.is_func(last_op))
                or (
                    last_op is not None
                    and keymaps.is_prefix(last_op)
                    and last_op != keymaps.OP_SUB
                )
            ):
                logger.debug(f"Rejected binary operator {key_id} after {last!r}")
                return False
            # A newly chosen binary operator replaces the previous one.
            while self.has_trailing_binary():
                self.delete()

        if keymaps.dig_val(key_id) is not None or key_id == keymaps.DEC_POINT:
            if not isinstance(self._last(), Literal):
                if isinstance(self._last(), PreEvaluated):
                    self._tokens.append(Operator(keymaps.OP_MUL))
                self._tokens.append(Literal())
            literal = self._tokens[-1]
            accepted = literal.add(key_id)
            if not accepted:
                logger.debug(f"Rejected key {key_id} for literal {literal!s}")
            return accepted

        if not keymaps.is_operator_id(key_id):
            raise ValueError(f"Unknown key id: {key_id}")
        self._tokens.append(Operator(key_id))
        return True

    def add_exponent(self, exp: int) -> bool:
        """Set the exponent of the trailing literal (scientific notation)."""
        last = self._last()
        if not isinstance(last, Literal):
            return False
        if exp != 0:
            last.add_exponent(exp)
        return True

    def delete(self) -> None:
        """Undo the last keypress."""
        last = self._last()
        if last is None:
            return
        if isinstance(last, Literal):
            if not last.is_empty:
                last.delete()
            if not last.is_empty:
                return
        self._tokens.pop()

    def remove_trailing_additive_operators(self) -> None:
        while self._tokens and (
            self._is_operator(-1, keymaps.OP_ADD) or self._is_operator(-1, keymaps.OP_SUB)
        ):
            self.delete()

    def append(self, other: ExpressionBuffer) -> None:
        """Concatenate another buffer, e.g. when pasting.

        Tokens are shared, not copied: ``other`` must not be edited
        afterwards. An explicit multiplication separates two adjacent
        operands, which would otherwise read as a single number.
        """
        if self._tokens and other._tokens:
            if not isinstance(self._tokens[-1], Operator) and not isinstance(
                other._tokens[0], Operator
            ):
                self._tokens.append(Operator(keymaps.OP_MUL))
        self._tokens.extend(other._tokens)

    def clear(self) -> None:
        self._tokens.clear()

    def clone(self) -> ExpressionBuffer:
        """Logical deep copy. Operator and PreEvaluated tokens are shared."""
        return ExpressionBuffer(
            token.copy() if isinstance(token, Literal) else token
            for token in self._tokens
        )

    def abbreviate(self, value: Real, degree_mode: bool, short_rep: str) -> ExpressionBuffer:
        """Return a one-token buffer standing for this whole expression.

        The caller supplies the value and display string, which must have
        been computed from exactly this content in this mode; nothing is
        evaluated here.
        """
        snapshot = self.clone()
        token = PreEvaluated(
            value=value,
            expr=snapshot,
            context=EvalContext(degree_mode, len(snapshot)),
            short_rep=short_rep,
        )
        return ExpressionBuffer([token])

    # Display

    def to_display_string(self) -> str:
        return "".join(str(token) for token in self._tokens)

    def to_description(self) -> str:
        """Text suitable for a screen reader."""
        return " ".join(
            token.description or str(token) for token in self._tokens
        )
