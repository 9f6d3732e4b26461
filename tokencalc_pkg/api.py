"""Public API for tokencalc - returns structured objects without side effects."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from . import keymaps
from .config import LOG_FILE, LOG_LEVEL, MAX_INPUT_LENGTH, VERSION
from .evaluator import evaluate as _evaluate
from .expr import ExpressionBuffer
from .logging_config import get_logger, setup_logging
from .serialization import from_bytes, to_bytes
from .types import EvalArithmeticError, EvalResult, ExprSyntaxError, ValidationError
from .worker import evaluate_buffer, evaluate_safely

logger = get_logger("api")

# Longest names first so "asin" wins over a bare "a" and "exp" over "e".
_NAMES_BY_LENGTH = sorted(keymaps.FUNCTION_NAMES, key=len, reverse=True)


def configure_logging(
    level: str | None = None, log_file: str | None = None
) -> logging.Logger:
    """Send tokencalc's log records to stderr and optionally a file.

    Defaults come from ``TOKENCALC_LOG_LEVEL`` and ``TOKENCALC_LOG_FILE``.
    The library itself never calls this; applications do, once.
    """
    root = setup_logging(level or LOG_LEVEL, log_file or LOG_FILE)
    logger.debug(f"tokencalc {VERSION} logging configured")
    return root


def buffer_from_keys(keys: Iterable[int]) -> ExpressionBuffer:
    """Build a buffer by pressing each key in turn.

    Keys the buffer rejects in its current state are skipped, exactly as
    an interactive keypad would ignore them.
    """
    expr = ExpressionBuffer()
    for key_id in keys:
        if not expr.add(key_id):
            logger.debug(f"Ignored key {key_id} after {expr!r}")
    return expr


def _match_name(text: str, i: int) -> str | None:
    for name in _NAMES_BY_LENGTH:
        if text.startswith(name, i):
            return name
    return None


def keys_from_string(text: str) -> list[int]:
    """Translate typed text into key ids.

    Raises:
        ValidationError: Text is too long or contains a character with no key
    """
    if len(text) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (max {MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    keys: list[int] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char.isspace():
            i += 1
            continue
        name = _match_name(text, i) if char.isalpha() else None
        if name is not None:
            key_id = keymaps.key_for_function(name)
            i += len(name)
            # Function keys already carry their open parenthesis.
            if keymaps.is_func(key_id):
                j = i
                while j < len(text) and text[j].isspace():
                    j += 1
                if j < len(text) and text[j] == "(":
                    i = j + 1
            keys.append(key_id)
            continue
        key_id = keymaps.key_for_char(char)
        if key_id is None:
            raise ValidationError(
                f"Unknown character {char!r} at position {i}", "UNKNOWN_CHAR"
            )
        keys.append(key_id)
        i += 1
    return keys


def buffer_from_string(text: str) -> ExpressionBuffer:
    """Build a buffer from text such as ``"2×sin(30)+10%"``.

    Example:
        >>> from tokencalc_pkg.api import buffer_from_string
        >>> buffer_from_string("12.5 * 2").to_display_string()
        '12.5×2'
    """
    return buffer_from_keys(keys_from_string(text))


def _to_result(data: dict) -> EvalResult:
    if not data.get("ok"):
        return EvalResult(
            ok=False,
            error=data.get("error") or "Unknown error",
            error_code=data.get("error_code"),
        )
    return EvalResult(
        ok=True,
        result=data.get("result"),
        approx=data.get("approx"),
        exact=data.get("exact"),
    )


def evaluate(
    expr: ExpressionBuffer, degree_mode: bool = False, timeout: float | None = None
) -> EvalResult:
    """Evaluate a buffer.

    Args:
        expr: Buffer to evaluate
        degree_mode: Interpret trig arguments and results in degrees
        timeout: If given, evaluate in a worker process and give up after
            this many seconds

    Returns:
        EvalResult with the short result string, an approximation, and
        whether the value is exactly rational
    """
    if timeout is None:
        data = evaluate_buffer(expr, degree_mode)
    else:
        data = evaluate_safely(expr, degree_mode, timeout)
    if not data.get("ok"):
        logger.warning(f"Evaluation of {expr!r} failed: {data.get('error')}")
    return _to_result(data)


def evaluate_string(
    text: str, degree_mode: bool = False, timeout: float | None = None
) -> EvalResult:
    """Evaluate typed text.

    Example:
        >>> from tokencalc_pkg.api import evaluate_string
        >>> evaluate_string("200+10%").result
        '220'
    """
    try:
        expr = buffer_from_string(text)
    except ValidationError as e:
        logger.warning(f"Rejected input: {e}")
        return EvalResult(ok=False, error=str(e), error_code=e.code)
    return evaluate(expr, degree_mode, timeout)


def validate_expression(expr: ExpressionBuffer | str) -> tuple[bool, str | None]:
    """Check that an expression is well formed.

    Arithmetic problems such as division by zero do not make an expression
    invalid; only text that cannot be typed and malformed or incomplete
    buffers do.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        if isinstance(expr, str):
            expr = buffer_from_string(expr)
        _evaluate(expr)
        return True, None
    except (ValidationError, ExprSyntaxError) as e:
        return False, str(e)
    except EvalArithmeticError:
        return True, None


def save(expr: ExpressionBuffer) -> bytes:
    """Serialize a buffer, sharing repeated pre-evaluated results."""
    return to_bytes(expr)


def load(data: bytes) -> ExpressionBuffer:
    """Rebuild a buffer written by ``save``.

    Raises:
        FormatError: The data is corrupt
    """
    return from_bytes(data)
