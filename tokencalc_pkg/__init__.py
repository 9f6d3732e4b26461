"""tokencalc package: token-based calculator expressions, evaluation, and persistence."""

__all__ = [
    "config",
    "keymaps",
    "numeric",
    "formatting",
    "tokens",
    "expr",
    "evaluator",
    "serialization",
    "session",
    "worker",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "configure_logging",
    "buffer_from_keys",
    "buffer_from_string",
    "evaluate",
    "evaluate_string",
    "validate_expression",
    "save",
    "load",
]
