"""Calculator session: the single owner of the expression being edited.

A session ties together the buffer, the degree/radian mode, the most
recent result, and a memory register. ``collapse`` implements "continue
from last answer": the current expression is frozen into one pre-evaluated
token that further input builds on. The memory register holds such a token
too, so recalling it pastes a finished value rather than re-entering keys.
"""

from __future__ import annotations

import io

from . import keymaps
from .evaluator import evaluate
from .expr import ExpressionBuffer
from .formatting import short_string
from .logging_config import get_logger
from .numeric import Real
from .serialization import (
    DataReader,
    DataWriter,
    init_expr_input,
    init_expr_output,
    read_expr,
    write_expr,
)
from .tokens import Operator, PreEvaluated
from .types import FormatError

logger = get_logger("session")


class CalculatorSession:
    """Holds one expression buffer and evaluates it on request.

    Not thread-safe; edits and evaluation must come from one caller at a
    time. Run ``evaluate`` off any latency-sensitive thread, or use
    ``worker.evaluate_safely`` to bound its running time.
    """

    def __init__(
        self,
        degree_mode: bool = False,
        expr: ExpressionBuffer | None = None,
        memory: ExpressionBuffer | None = None,
    ):
        self._degree_mode = degree_mode
        self._expr = expr if expr is not None else ExpressionBuffer()
        self._memory = memory
        self._result: Real | None = None
        self._result_string: str | None = None

    @property
    def expr(self) -> ExpressionBuffer:
        return self._expr

    @property
    def degree_mode(self) -> bool:
        return self._degree_mode

    @degree_mode.setter
    def degree_mode(self, value: bool) -> None:
        if value != self._degree_mode:
            self._degree_mode = value
            if self._expr.has_trig_funcs():
                self._invalidate()

    @property
    def result(self) -> Real | None:
        """Value from the last successful evaluate(), if still current."""
        return self._result

    @property
    def result_string(self) -> str | None:
        return self._result_string

    @property
    def memory(self) -> ExpressionBuffer | None:
        """One-token buffer holding the memory value, or None when empty."""
        return self._memory

    def _invalidate(self) -> None:
        self._result = None
        self._result_string = None

    # Editing

    def add(self, key_id: int) -> bool:
        accepted = self._expr.add(key_id)
        if accepted:
            self._invalidate()
        return accepted

    def add_exponent(self, exp: int) -> bool:
        accepted = self._expr.add_exponent(exp)
        if accepted:
            self._invalidate()
        return accepted

    def delete(self) -> None:
        self._expr.delete()
        self._invalidate()

    def clear(self) -> None:
        self._expr.clear()
        self._invalidate()

    def paste(self, other: ExpressionBuffer) -> None:
        """Append a copy of another buffer."""
        self._expr.append(other.clone())
        self._invalidate()

    def has_trig_funcs(self) -> bool:
        """Whether the degree/radian mode affects the current value."""
        return self._expr.has_trig_funcs()

    # Evaluation

    def evaluate(self) -> Real:
        """Evaluate the current expression, caching the result.

        Raises:
            ExprSyntaxError: The expression is incomplete or malformed
            EvalArithmeticError: The value is undefined
        """
        if self._result is None:
            value = evaluate(self._expr, self._degree_mode)
            self._result = value
            self._result_string = short_string(value)
            logger.debug(f"Evaluated {self._expr!r} to {self._result_string}")
        return self._result

    def _abbreviated(self) -> ExpressionBuffer:
        value = self.evaluate()
        snapshot = self._expr.clone()
        while snapshot.has_trailing_binary():
            snapshot.delete()
        # Evaluating "(ans)" returns ans's own value object; the token gets
        # its own wrapper so no two tokens share one value.
        return snapshot.abbreviate(Real(value), self._degree_mode, self._result_string)

    def collapse(self) -> ExpressionBuffer:
        """Replace the expression by a single token holding its value.

        Trailing binary operators, which evaluation ignores, are dropped
        first so the stored expression re-evaluates to the same value.
        """
        self._expr = self._abbreviated()
        return self._expr

    # Memory

    def add_to_memory(self) -> ExpressionBuffer:
        """M+: add the current value to memory.

        The expression itself is left alone. Raises as ``evaluate`` does,
        leaving memory unchanged.
        """
        return self._update_memory(keymaps.OP_ADD)

    def subtract_from_memory(self) -> ExpressionBuffer:
        """M-: subtract the current value from memory."""
        return self._update_memory(keymaps.OP_SUB)

    def _update_memory(self, op: int) -> ExpressionBuffer:
        current = self._abbreviated()
        if self._memory is None and op == keymaps.OP_ADD:
            self._memory = current
        else:
            # An empty memory counts as zero, so M- stores "-current".
            tokens = list(self._memory) if self._memory is not None else []
            combined = ExpressionBuffer(tokens + [Operator(op), current[0]])
            value = evaluate(combined, self._degree_mode)
            self._memory = combined.abbreviate(value, self._degree_mode, short_string(value))
        logger.debug(f"Memory now {self._memory[0].short_rep}")
        return self._memory

    def recall_memory(self) -> bool:
        """MR: append the memory value to the expression.

        Returns False when memory is empty.
        """
        if self._memory is None:
            return False
        self.paste(self._memory)
        return True

    def clear_memory(self) -> None:
        """MC."""
        self._memory = None

    # Persistence

    def save_state(self) -> bytes:
        """Serialize mode, expression and memory in one pass.

        Format: ``bool degree_mode, buffer, bool has_memory [, buffer]``.
        Tokens recalled from memory are written once and referenced after.
        """
        stream = io.BytesIO()
        out = DataWriter(stream)
        context = init_expr_output()
        out.write_bool(self._degree_mode)
        write_expr(self._expr, out, context)
        out.write_bool(self._memory is not None)
        if self._memory is not None:
            write_expr(self._memory, out, context)
        return stream.getvalue()

    @classmethod
    def restore_state(cls, data: bytes) -> CalculatorSession:
        """Rebuild a session written by ``save_state``.

        Raises:
            FormatError: The data is corrupt
        """
        stream = io.BytesIO(data)
        inp = DataReader(stream)
        context = init_expr_input()
        degree_mode = inp.read_bool()
        try:
            expr = read_expr(inp, context)
            memory = read_expr(inp, context) if inp.read_bool() else None
        except RecursionError as e:
            raise FormatError("Stored subexpressions nested too deeply") from e
        if memory is not None:
            if len(memory) != 1 or not isinstance(memory[0], PreEvaluated):
                raise FormatError("Memory must hold a single stored result")
        if stream.read(1):
            raise FormatError("Trailing bytes after session state")
        return cls(degree_mode=degree_mode, expr=expr, memory=memory)
