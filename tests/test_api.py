"""Test the public API functions."""

import pytest

from tokencalc_pkg import keymaps
from tokencalc_pkg.api import (
    buffer_from_keys,
    buffer_from_string,
    evaluate,
    evaluate_string,
    keys_from_string,
    load,
    save,
    validate_expression,
)
from tokencalc_pkg.config import MAX_INPUT_LENGTH
from tokencalc_pkg.expr import ExpressionBuffer
from tokencalc_pkg.types import EvalResult, ValidationError


class TestBufferFromText:
    """Test turning typed text into key presses."""

    def test_function_names_consume_paren(self):
        assert buffer_from_string("2×sin(30)").to_display_string() == "2×sin(30)"
        assert buffer_from_string("sin 30").to_display_string() == "sin(30"

    def test_longest_name_wins(self):
        assert keys_from_string("asin(1") == [keymaps.FUN_ARCSIN, keymaps.DIGIT_1]
        assert keys_from_string("exp(1") == [keymaps.FUN_EXP, keymaps.DIGIT_1]
        assert keys_from_string("e") == [keymaps.CONST_E]

    def test_sqrt_and_pi_names(self):
        assert keys_from_string("sqrt(4)") == [
            keymaps.OP_SQRT,
            keymaps.LPAREN,
            keymaps.DIGIT_4,
            keymaps.RPAREN,
        ]
        assert buffer_from_string("2pi").to_display_string() == "2π"

    def test_ascii_and_unicode_operators(self):
        assert buffer_from_string("6 * 7 / 2 - 1").to_display_string() == "6×7÷2−1"
        assert buffer_from_string("6×7÷2−1").to_display_string() == "6×7÷2−1"

    def test_unknown_character(self):
        with pytest.raises(ValidationError) as exc_info:
            buffer_from_string("2$3")
        assert exc_info.value.code == "UNKNOWN_CHAR"
        with pytest.raises(ValidationError):
            buffer_from_string("x+1")

    def test_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            buffer_from_string("1" * (MAX_INPUT_LENGTH + 1))
        assert exc_info.value.code == "TOO_LONG"

    def test_rejected_keys_are_skipped(self):
        expr = buffer_from_keys([keymaps.OP_MUL, keymaps.DIGIT_5, keymaps.DEC_POINT, keymaps.DEC_POINT])
        assert expr.to_display_string() == "5."


class TestEvaluate:
    """Test that evaluation returns typed results."""

    def test_evaluate_returns_eval_result(self):
        result = evaluate(buffer_from_string("200+10%"))
        assert isinstance(result, EvalResult)
        assert result.ok is True
        assert result.result == "220"
        assert result.exact is True

    def test_evaluate_string(self):
        result = evaluate_string("1/3")
        assert result.ok is True
        assert result.result.endswith(keymaps.ELLIPSIS)
        assert result.exact is True

    def test_degree_mode(self):
        assert evaluate_string("sin(30", degree_mode=True).result == "0.5"

    def test_arithmetic_error(self):
        result = evaluate_string("1/0")
        assert result.ok is False
        assert result.error_code == "DIVISION_BY_ZERO"
        assert result.to_dict() == {
            "ok": False,
            "error": "Division by zero",
            "error_code": "DIVISION_BY_ZERO",
        }

    def test_invalid_text(self):
        result = evaluate_string("2$")
        assert result.ok is False
        assert result.error_code == "UNKNOWN_CHAR"

    def test_empty(self):
        result = evaluate(ExpressionBuffer())
        assert result.ok is False
        assert result.error_code == "SYNTAX_ERROR"

    def test_with_timeout(self):
        result = evaluate_string("3!!", timeout=60)
        assert result.ok is True
        assert result.result == "720"

    def test_repr(self):
        assert "result='4'" in repr(evaluate_string("2+2"))


class TestValidateExpression:
    def test_valid(self):
        assert validate_expression("2 + 2") == (True, None)
        assert validate_expression(buffer_from_string("(5")) == (True, None)

    def test_arithmetic_errors_are_valid(self):
        assert validate_expression("1/0") == (True, None)

    def test_invalid(self):
        is_valid, error = validate_expression("5)")
        assert is_valid is False
        assert error

    def test_empty_is_invalid(self):
        is_valid, _ = validate_expression("")
        assert is_valid is False

    def test_unknown_character(self):
        is_valid, error = validate_expression("import os")
        assert is_valid is False
        assert "Unknown character" in error


class TestSaveLoad:
    def test_round_trip(self):
        expr = buffer_from_string("12×(3+4)!")
        assert load(save(expr)).to_display_string() == expr.to_display_string()
