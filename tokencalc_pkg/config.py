"""Centralized configuration for tokencalc.

This module defines:
- Literal entry limits (exponent magnitude)
- Evaluation limits (nesting depth, factorial size, lazy exponent threshold)
- Numeric tolerances used for sign and zero decisions
- Display precision for short result strings
- Worker timeout for isolated evaluation
- Log level and optional log file for configure_logging()

Configuration can be overridden via environment variables prefixed with
TOKENCALC_.
"""

import importlib.metadata
import os

# Version is defined in pyproject.toml [project] section
try:
    VERSION = importlib.metadata.version("tokencalc")
except importlib.metadata.PackageNotFoundError:
    # Fallback if package not installed
    VERSION = "0.1.0"

# Literal entry limits
MAX_EXPONENT_MAGNITUDE = int(
    os.getenv("TOKENCALC_MAX_EXPONENT_MAGNITUDE", "10000")
)  # exponent digits are refused beyond this magnitude

# Evaluation limits
MAX_EVAL_DEPTH = int(os.getenv("TOKENCALC_MAX_EVAL_DEPTH", "64"))  # nesting levels
FACTORIAL_MAX_BITS = int(
    os.getenv("TOKENCALC_FACTORIAL_MAX_BITS", "20")
)  # bit length of the largest factorial argument
MAX_EXACT_EXPONENT = int(
    os.getenv("TOKENCALC_MAX_EXACT_EXPONENT", "100000")
)  # integral powers beyond this are left unevaluated

# Numeric tolerance constants
NUMERIC_PRECISION = int(
    os.getenv("TOKENCALC_NUMERIC_PRECISION", "50")
)  # significant digits used when SymPy cannot decide a sign exactly
COMPARE_TOLERANCE = float(
    os.getenv("TOKENCALC_COMPARE_TOLERANCE", "1e-40")
)  # magnitudes below this are treated as zero

# Display configuration
SHORT_TARGET_LENGTH = int(
    os.getenv("TOKENCALC_SHORT_TARGET_LENGTH", "8")
)  # digits shown in a pre-evaluated token
OUTPUT_PRECISION = int(os.getenv("TOKENCALC_OUTPUT_PRECISION", "15"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("TOKENCALC_MAX_INPUT_LENGTH", "10000"))  # characters

# Worker configuration
WORKER_TIMEOUT = float(os.getenv("TOKENCALC_WORKER_TIMEOUT", "15"))  # seconds
WORKER_CPU_SECONDS = int(
    os.getenv("TOKENCALC_WORKER_CPU_SECONDS", "30")
)  # CPU limit applied inside the worker process (Unix only)

# Logging configuration
LOG_LEVEL = os.getenv("TOKENCALC_LOG_LEVEL", "WARNING")
LOG_FILE = os.getenv("TOKENCALC_LOG_FILE") or None  # stderr only when unset
