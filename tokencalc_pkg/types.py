"""Type definitions, evaluation context, and error classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EvalContext:
    """Settings an expression is evaluated under.

    Only ``degree_mode`` is persisted. ``prefix_length`` is the number of
    leading tokens eligible for evaluation and is recomputed on load.
    """

    degree_mode: bool
    prefix_length: int


@dataclass
class EvalResult:
    """Result of evaluating an expression buffer."""

    ok: bool
    result: str | None = None
    approx: str | None = None
    exact: bool | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.exact is not None:
            result_dict["exact"] = self.exact
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        parts = [f"ok={self.ok}"]
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.approx is not None:
            parts.append(f"approx={self.approx!r}")
        if self.exact is not None:
            parts.append(f"exact={self.exact!r}")
        return f"EvalResult({', '.join(parts)})"


class ValidationError(Exception):
    """Raised when text input cannot be turned into keypresses."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ExprSyntaxError(Exception):
    """Raised when a buffer is malformed or incomplete."""

    def __init__(self, message: str = "Syntax error", code: str = "SYNTAX_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EvalArithmeticError(ArithmeticError):
    """Raised by the numeric layer for domain errors (division by zero etc.)."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class FormatError(Exception):
    """Raised when a serialized expression stream is corrupt."""

    def __init__(self, message: str = "Bad save file format", code: str = "BAD_FORMAT"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
