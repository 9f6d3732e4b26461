"""Binary serialization of expression buffers.

Format (big-endian)::

    buffer    := int32 count, token * count
    token     := byte tag, record
    OPERATOR  := int32 operator_id
    CONSTANT  := utf whole, bool saw_decimal, utf fraction, int32 exponent
    PRE_EVAL  := int32 index [buffer, bool degree_mode, utf short_rep]
    utf       := uint16 byte length, UTF-8 bytes

PreEvaluated tokens may contain whole buffers that themselves contain
PreEvaluated tokens. Writing them naively can blow up exponentially when
one result is reused many times, so each write pass numbers the distinct
values it has written and writes a repeated value as its index alone. The
bracketed part of a PRE_EVAL record is present only the first time an index
appears. Reading mirrors this, recomputing each value from its buffer once.

The tables live in ``WriteContext``/``ReadContext`` objects that are passed
explicitly through a single pass and must not be shared between passes.
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

from . import keymaps
from .evaluator import evaluate_prefix
from .expr import ExpressionBuffer
from .logging_config import get_logger
from .numeric import Real
from .tokens import Literal, Operator, PreEvaluated, Token, TokenKind
from .types import EvalArithmeticError, EvalContext, ExprSyntaxError, FormatError

logger = get_logger("serialization")

_INT = struct.Struct(">i")
_SHORT = struct.Struct(">H")
_BYTE = struct.Struct(">b")


class WriteContext:
    """Maps each value already written in this pass to its index."""

    def __init__(self):
        self._indices: dict[int, int] = {}
        # Keeps written values alive so their ids stay unique for the pass.
        self._values: list[Real] = []
        self._next = 1

    def lookup(self, value: Real) -> int | None:
        return self._indices.get(id(value))

    def reserve(self) -> int:
        """Claim the next index before its record is written."""
        index = self._next
        self._next += 1
        return index

    def bind(self, value: Real, index: int) -> None:
        """Make later occurrences of ``value`` refer to ``index``.

        Called only once the record for ``index`` is complete, so a
        sub-buffer never refers back to the token that encloses it.
        """
        self._indices[id(value)] = index
        self._values.append(value)

    def __len__(self) -> int:
        return self._next - 1


class ReadContext:
    """Maps each index read in this pass to the token rebuilt for it."""

    def __init__(self):
        self._tokens: dict[int, PreEvaluated] = {}
        self._highest = 0

    def get(self, index: int) -> PreEvaluated | None:
        return self._tokens.get(index)

    def claim(self, index: int) -> None:
        """Accept ``index`` as the next new record, or reject the stream."""
        if index != self._highest + 1:
            raise FormatError(f"Unexpected subexpression index {index}")
        self._highest = index

    def put(self, index: int, token: PreEvaluated) -> None:
        self._tokens[index] = token

    def __len__(self) -> int:
        return len(self._tokens)


def init_expr_output() -> WriteContext:
    """Start a write pass."""
    return WriteContext()


def init_expr_input() -> ReadContext:
    """Start a read pass."""
    return ReadContext()


class DataWriter:
    """Primitive big-endian writes onto a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def write_byte(self, value: int) -> None:
        self.stream.write(_BYTE.pack(value))

    def write_bool(self, value: bool) -> None:
        self.write_byte(1 if value else 0)

    def write_int(self, value: int) -> None:
        try:
            self.stream.write(_INT.pack(value))
        except struct.error as e:
            raise ValueError(f"Value does not fit in 32 bits: {value}") from e

    def write_utf(self, text: str) -> None:
        data = text.encode("utf-8")
        if len(data) > 0xFFFF:
            raise ValueError("String too long to serialize")
        self.stream.write(_SHORT.pack(len(data)))
        self.stream.write(data)


class DataReader:
    """Primitive big-endian reads from a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def _read(self, size: int) -> bytes:
        data = self.stream.read(size)
        if len(data) != size:
            raise FormatError("Unexpected end of stream")
        return data

    def read_byte(self) -> int:
        return _BYTE.unpack(self._read(1))[0]

    def read_bool(self) -> bool:
        return self.read_byte() != 0

    def read_int(self) -> int:
        return _INT.unpack(self._read(4))[0]

    def read_utf(self) -> str:
        (length,) = _SHORT.unpack(self._read(2))
        try:
            return self._read(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError("Invalid string encoding") from e


# Writing


def write_expr(expr: ExpressionBuffer, out: DataWriter, context: WriteContext) -> None:
    out.write_int(len(expr))
    for token in expr:
        write_token(token, out, context)


def write_token(token: Token, out: DataWriter, context: WriteContext) -> None:
    if isinstance(token, Operator):
        out.write_byte(TokenKind.OPERATOR)
        out.write_int(token.id)
    elif isinstance(token, Literal):
        out.write_byte(TokenKind.CONSTANT)
        out.write_utf(token.whole)
        out.write_bool(token.saw_decimal)
        out.write_utf(token.fraction)
        out.write_int(token.exponent)
    elif isinstance(token, PreEvaluated):
        out.write_byte(TokenKind.PRE_EVAL)
        index = context.lookup(token.value)
        if index is not None:
            out.write_int(index)
            return
        # The value may also be the value of a token inside token.expr, as
        # after collapsing twice, so it is bound only after its record.
        index = context.reserve()
        out.write_int(index)
        write_expr(token.expr, out, context)
        out.write_bool(token.context.degree_mode)
        out.write_utf(token.short_rep)
        context.bind(token.value, index)
    else:
        raise TypeError(f"Not a token: {token!r}")


# Reading


def read_expr(inp: DataReader, context: ReadContext) -> ExpressionBuffer:
    size = inp.read_int()
    if size < 0:
        raise FormatError(f"Negative token count: {size}")
    return ExpressionBuffer(read_token(inp, context) for _ in range(size))


def read_token(inp: DataReader, context: ReadContext) -> Token:
    kind = inp.read_byte()
    if kind == TokenKind.CONSTANT:
        return _read_literal(inp)
    if kind == TokenKind.OPERATOR:
        op = inp.read_int()
        if not keymaps.is_operator_id(op):
            raise FormatError(f"Unknown operator id: {op}")
        return Operator(op)
    if kind == TokenKind.PRE_EVAL:
        return _read_pre_evaluated(inp, context)
    raise FormatError(f"Bad save file format: token tag {kind}")


def _read_literal(inp: DataReader) -> Literal:
    whole = inp.read_utf()
    saw_decimal = inp.read_bool()
    fraction = inp.read_utf()
    exponent = inp.read_int()
    digits = whole + fraction
    if digits and not (digits.isascii() and digits.isdigit()):
        raise FormatError(f"Invalid literal digits: {whole!r}.{fraction!r}")
    if fraction and not saw_decimal:
        raise FormatError("Literal fraction without decimal point")
    if not whole and not saw_decimal:
        raise FormatError("Empty literal")
    return Literal(whole, fraction, saw_decimal, exponent)


def _read_pre_evaluated(inp: DataReader, context: ReadContext) -> PreEvaluated:
    index = inp.read_int()
    previous = context.get(index)
    if previous is not None:
        return previous
    context.claim(index)

    expr = read_expr(inp, context)
    eval_context = EvalContext(inp.read_bool(), len(expr))
    # Only expressions that evaluated successfully are ever written, so
    # this is expected to succeed, though possibly slowly.
    try:
        ret = evaluate_prefix(expr, eval_context)
    except (ExprSyntaxError, EvalArithmeticError) as e:
        logger.error(f"Stored subexpression {index} does not evaluate: {e}")
        raise FormatError(f"Stored subexpression {index} does not evaluate") from e
    if ret.pos != eval_context.prefix_length:
        raise FormatError(f"Stored subexpression {index} is incomplete")
    token = PreEvaluated(ret.value, expr, eval_context, inp.read_utf())
    context.put(index, token)
    return token


# Convenience wrappers, one pass each


def to_bytes(expr: ExpressionBuffer) -> bytes:
    stream = io.BytesIO()
    context = init_expr_output()
    write_expr(expr, DataWriter(stream), context)
    logger.debug(f"Wrote {len(expr)} tokens, {len(context)} shared results")
    return stream.getvalue()


def from_bytes(data: bytes) -> ExpressionBuffer:
    stream = io.BytesIO(data)
    context = init_expr_input()
    try:
        expr = read_expr(DataReader(stream), context)
    except RecursionError as e:
        raise FormatError("Stored subexpressions nested too deeply") from e
    if stream.read(1):
        raise FormatError("Trailing bytes after expression")
    logger.debug(f"Read {len(expr)} tokens, {len(context)} shared results")
    return expr
