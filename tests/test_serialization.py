"""Tests for binary serialization of expression buffers."""

import io
import struct

import pytest

from tokencalc_pkg import keymaps
from tokencalc_pkg.api import buffer_from_string
from tokencalc_pkg.evaluator import evaluate
from tokencalc_pkg.expr import ExpressionBuffer
from tokencalc_pkg.numeric import ONE
from tokencalc_pkg.serialization import (
    DataReader,
    DataWriter,
    ReadContext,
    WriteContext,
    from_bytes,
    init_expr_input,
    init_expr_output,
    read_expr,
    to_bytes,
    write_expr,
)
from tokencalc_pkg.tokens import Literal, Operator, PreEvaluated, TokenKind
from tokencalc_pkg.types import EvalContext, FormatError


def _collapse(expr, degree_mode=False):
    value = evaluate(expr, degree_mode)
    return expr.abbreviate(value, degree_mode, str(value))[0]


class TestRoundTrip:
    """Test that buffers survive a write/read pass."""

    def test_operators_and_literals(self):
        expr = buffer_from_string("12.5×sin(30)+7!-√2")
        loaded = from_bytes(to_bytes(expr))
        assert loaded.to_display_string() == expr.to_display_string()

    def test_literal_fields(self):
        expr = buffer_from_string("1234.")
        expr.add_exponent(-12)
        token = from_bytes(to_bytes(expr))[0]
        assert token == Literal("1234", "", True, -12)

    def test_pre_evaluated(self):
        token = _collapse(buffer_from_string("sin(30"), degree_mode=True)
        expr = ExpressionBuffer([token, Operator(keymaps.OP_ADD), Literal("1")])
        loaded = from_bytes(to_bytes(expr))
        restored = loaded[0]
        assert isinstance(restored, PreEvaluated)
        assert restored.short_rep == token.short_rep
        assert restored.context == EvalContext(True, 2)
        assert restored.value.definitely_equals(token.value)
        assert evaluate(loaded).to_fraction() == evaluate(expr).to_fraction()

    def test_shared_result_is_read_once(self):
        token = _collapse(buffer_from_string("2+3"))
        expr = ExpressionBuffer([token, Operator(keymaps.OP_MUL), token])
        loaded = from_bytes(to_bytes(expr))
        assert loaded[0] is loaded[2]

    def test_passes_are_independent(self):
        token = _collapse(buffer_from_string("2+3"))
        expr = ExpressionBuffer([token])
        assert to_bytes(expr) == to_bytes(expr)


class TestSharing:
    """Test that repeated results are written once."""

    def test_repeat_costs_only_an_index(self):
        token = _collapse(buffer_from_string("1÷3"))
        once = to_bytes(ExpressionBuffer([token]))
        twice = to_bytes(ExpressionBuffer([token, Operator(keymaps.OP_ADD), token]))
        # operator record (tag + id) plus back reference (tag + index)
        assert len(twice) - len(once) == 10

    def test_nested_reuse_stays_linear(self):
        token = _collapse(buffer_from_string("1"))
        for _ in range(40):
            doubled = ExpressionBuffer([token, Operator(keymaps.OP_ADD), token])
            token = _collapse(doubled)
        data = to_bytes(ExpressionBuffer([token]))
        assert len(data) < 40 * 100
        loaded = from_bytes(data)
        assert loaded[0].value.to_fraction() == 2**40

    def test_context_numbering(self):
        context = init_expr_output()
        assert isinstance(context, WriteContext)
        first = _collapse(buffer_from_string("2"))
        second = _collapse(buffer_from_string("3"))
        assert context.reserve() == 1
        assert context.reserve() == 2
        context.bind(second.value, 2)
        assert context.lookup(second.value) == 2
        assert context.lookup(first.value) is None
        context.bind(first.value, 1)
        assert context.lookup(first.value) == 1
        assert context.lookup(ONE) is None
        assert len(context) == 2
        assert isinstance(init_expr_input(), ReadContext)

    def test_collapsing_twice(self):
        token = _collapse(buffer_from_string("5"))
        # Evaluating a lone pre-evaluated token yields that token's own value.
        outer = ExpressionBuffer([token]).abbreviate(token.value, False, "5")
        assert outer[0].value is token.value
        loaded = from_bytes(to_bytes(outer))
        assert loaded[0].expr[0].short_rep == "5"
        assert evaluate(loaded).to_fraction() == 5

    def test_parenthesized_result_collapsed(self):
        token = _collapse(buffer_from_string("2+3"))
        wrapped = ExpressionBuffer([Operator(keymaps.LPAREN), token, Operator(keymaps.RPAREN)])
        outer = wrapped.abbreviate(evaluate(wrapped), False, "5")
        expr = ExpressionBuffer([outer[0], Operator(keymaps.OP_MUL), token])
        loaded = from_bytes(to_bytes(expr))
        assert loaded[0].expr.to_display_string() == wrapped.to_display_string()
        assert evaluate(loaded).to_fraction() == 25


class TestCorruptInput:
    """Test that bad streams raise FormatError."""

    def test_unknown_tag(self):
        with pytest.raises(FormatError) as exc_info:
            from_bytes(struct.pack(">ib", 1, 7))
        assert exc_info.value.code == "BAD_FORMAT"

    def test_unknown_operator(self):
        with pytest.raises(FormatError):
            from_bytes(struct.pack(">ibi", 1, TokenKind.OPERATOR, 999))

    def test_negative_count(self):
        with pytest.raises(FormatError):
            from_bytes(struct.pack(">i", -1))

    def test_truncated(self):
        data = to_bytes(buffer_from_string("1+2"))
        with pytest.raises(FormatError):
            from_bytes(data[:-1])

    def test_trailing_bytes(self):
        data = to_bytes(buffer_from_string("1+2"))
        with pytest.raises(FormatError):
            from_bytes(data + b"\x00")

    def test_bad_literal_digits(self):
        stream = io.BytesIO()
        out = DataWriter(stream)
        out.write_int(1)
        out.write_byte(TokenKind.CONSTANT)
        out.write_utf("1a")
        out.write_bool(False)
        out.write_utf("")
        out.write_int(0)
        with pytest.raises(FormatError):
            from_bytes(stream.getvalue())

    def test_stored_subexpression_must_evaluate(self):
        bogus = PreEvaluated(ONE, buffer_from_string("1÷0"), EvalContext(False, 3), "1")
        data = to_bytes(ExpressionBuffer([bogus]))
        with pytest.raises(FormatError):
            from_bytes(data)

    def test_back_reference_before_definition(self):
        # A reference to index 1 with no definition reads as a fresh record,
        # which then runs out of data.
        with pytest.raises(FormatError):
            from_bytes(struct.pack(">ibi", 1, TokenKind.PRE_EVAL, 1))

    def test_reference_to_enclosing_record(self):
        data = struct.pack(">ibi", 1, TokenKind.PRE_EVAL, 1)
        data += struct.pack(">ibi", 1, TokenKind.PRE_EVAL, 1)
        with pytest.raises(FormatError) as exc_info:
            from_bytes(data)
        assert "index 1" in str(exc_info.value)

    def test_skipped_index(self):
        with pytest.raises(FormatError):
            from_bytes(struct.pack(">ibi", 1, TokenKind.PRE_EVAL, 3))

    def test_deeply_nested_records(self):
        data = b"".join(
            struct.pack(">ibi", 1, TokenKind.PRE_EVAL, index) for index in range(1, 5001)
        )
        with pytest.raises(FormatError) as exc_info:
            from_bytes(data)
        assert "nested too deeply" in str(exc_info.value)


class TestPrimitives:
    def test_int_overflow(self):
        expr = ExpressionBuffer([Literal("1", "", False, 2**40)])
        with pytest.raises(ValueError):
            to_bytes(expr)

    def test_utf_round_trip(self):
        stream = io.BytesIO()
        DataWriter(stream).write_utf("0.333…")
        stream.seek(0)
        assert DataReader(stream).read_utf() == "0.333…"

    def test_explicit_contexts(self):
        expr = buffer_from_string("2×3")
        stream = io.BytesIO()
        write_expr(expr, DataWriter(stream), init_expr_output())
        stream.seek(0)
        loaded = read_expr(DataReader(stream), init_expr_input())
        assert loaded.to_display_string() == "2×3"
