"""Evaluation with results as plain dictionaries, optionally in a worker process.

Evaluation can take a very long time for pathological inputs (huge
exponents feeding transcendental functions, for example) and cannot be
interrupted from inside. ``evaluate_safely`` therefore ships the serialized
buffer to a separate process and abandons it on timeout.
"""

from __future__ import annotations

import multiprocessing
import queue
import time
from typing import Any

from .config import WORKER_CPU_SECONDS, WORKER_TIMEOUT
from .evaluator import evaluate
from .expr import ExpressionBuffer
from .formatting import format_number, short_string
from .logging_config import get_logger
from .serialization import from_bytes, to_bytes
from .types import EvalArithmeticError, ExprSyntaxError, FormatError

logger = get_logger("worker")

HAS_RESOURCE = False
try:
    import resource  # noqa: F401 - check if available

    HAS_RESOURCE = True
except (ImportError, OSError):
    HAS_RESOURCE = False

_POLL_INTERVAL = 0.05


def _limit_resources() -> None:
    """Apply a CPU time limit to the worker process (Unix only)."""
    if not HAS_RESOURCE:
        return
    try:
        import resource as _resource

        _resource.setrlimit(
            _resource.RLIMIT_CPU, (WORKER_CPU_SECONDS, WORKER_CPU_SECONDS + 1)
        )
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to apply resource limits: {e}")


def evaluate_buffer(expr: ExpressionBuffer, degree_mode: bool = False) -> dict[str, Any]:
    """Evaluate a buffer in this process, reporting errors in the result."""
    try:
        value = evaluate(expr, degree_mode)
    except ExprSyntaxError as e:
        logger.debug(f"Syntax error in {expr!r}: {e}")
        return {"ok": False, "error": str(e), "error_code": e.code}
    except EvalArithmeticError as e:
        logger.debug(f"Arithmetic error in {expr!r}: {e}")
        return {"ok": False, "error": str(e), "error_code": e.code}
    return {
        "ok": True,
        "result": short_string(value),
        "approx": format_number(value),
        "exact": value.is_rational,
    }


def worker_evaluate(payload: bytes, degree_mode: bool) -> dict[str, Any]:
    """Decode a serialized buffer and evaluate it."""
    try:
        expr = from_bytes(payload)
    except FormatError as e:
        logger.warning(f"Corrupt payload: {e}")
        return {"ok": False, "error": str(e), "error_code": e.code}
    return evaluate_buffer(expr, degree_mode)


def _worker_main(payload: bytes, degree_mode: bool, results: Any) -> None:
    _limit_resources()
    try:
        results.put(worker_evaluate(payload, degree_mode))
    except Exception as e:
        logger.exception("Unexpected evaluation error in worker")
        results.put(
            {"ok": False, "error": f"Evaluation failed: {e}", "error_code": "WORKER_ERROR"}
        )


def evaluate_safely(
    expr: ExpressionBuffer, degree_mode: bool = False, timeout: float = WORKER_TIMEOUT
) -> dict[str, Any]:
    """Evaluate a buffer in a child process, giving up after timeout seconds.

    Args:
        expr: Buffer to evaluate; it is serialized before this returns
        degree_mode: Interpret trig arguments and results in degrees
        timeout: Seconds to wait for the worker

    Returns:
        Dictionary with ``ok`` and either ``result``/``approx``/``exact`` or
        ``error``/``error_code``
    """
    payload = to_bytes(expr)
    results = multiprocessing.Queue()
    proc = multiprocessing.Process(
        target=_worker_main, args=(payload, degree_mode, results), daemon=True
    )
    proc.start()
    deadline = time.monotonic() + timeout
    try:
        while True:
            try:
                return results.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                pass
            if not proc.is_alive():
                try:
                    return results.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    logger.warning(f"Worker exited with code {proc.exitcode}")
                    return {
                        "ok": False,
                        "error": "Worker exited without a result",
                        "error_code": "WORKER_ERROR",
                    }
            if time.monotonic() >= deadline:
                logger.warning(f"Evaluation timed out after {timeout}s")
                return {"ok": False, "error": "Evaluation timed out.", "error_code": "TIMEOUT"}
    finally:
        if proc.is_alive():
            proc.terminate()
        proc.join(1)
        results.close()
