"""Key identifiers and their properties.

Every keypress an expression can receive is identified by a small integer.
Operator ids double as the operator codes written by serialization, so the
values below must never be renumbered.
"""

from __future__ import annotations

DIGIT_0 = 0
DIGIT_1 = 1
DIGIT_2 = 2
DIGIT_3 = 3
DIGIT_4 = 4
DIGIT_5 = 5
DIGIT_6 = 6
DIGIT_7 = 7
DIGIT_8 = 8
DIGIT_9 = 9
DEC_POINT = 10

OP_ADD = 20
OP_SUB = 21
OP_MUL = 22
OP_DIV = 23
OP_POW = 24

OP_SQRT = 30
OP_FACT = 31
OP_SQR = 32
OP_PCT = 33

LPAREN = 40
RPAREN = 41

FUN_SIN = 50
FUN_COS = 51
FUN_TAN = 52
FUN_ARCSIN = 53
FUN_ARCCOS = 54
FUN_ARCTAN = 55
FUN_LN = 56
FUN_LOG = 57
FUN_EXP = 58

CONST_PI = 60
CONST_E = 61

ELLIPSIS = "…"
MINUS_SIGN = "−"

BINARY_OPS = frozenset({OP_ADD, OP_SUB, OP_MUL, OP_DIV, OP_POW})
PREFIX_OPS = frozenset({OP_SQRT, OP_SUB})
SUFFIX_OPS = frozenset({OP_FACT, OP_PCT, OP_SQR})
TRIG_FUNCS = frozenset(
    {FUN_SIN, FUN_COS, FUN_TAN, FUN_ARCSIN, FUN_ARCCOS, FUN_ARCTAN}
)
FUNCS = TRIG_FUNCS | {FUN_LN, FUN_LOG, FUN_EXP}

# Display text for every operator key. Function keys include their implicit
# open parenthesis.
OPERATOR_STRINGS = {
    OP_ADD: "+",
    OP_SUB: MINUS_SIGN,
    OP_MUL: "×",
    OP_DIV: "÷",
    OP_POW: "^",
    OP_SQRT: "√",
    OP_FACT: "!",
    OP_SQR: "²",
    OP_PCT: "%",
    LPAREN: "(",
    RPAREN: ")",
    FUN_SIN: "sin(",
    FUN_COS: "cos(",
    FUN_TAN: "tan(",
    FUN_ARCSIN: "sin⁻¹(",
    FUN_ARCCOS: "cos⁻¹(",
    FUN_ARCTAN: "tan⁻¹(",
    FUN_LN: "ln(",
    FUN_LOG: "log(",
    FUN_EXP: "exp(",
    CONST_PI: "π",
    CONST_E: "e",
}

# Spoken descriptions, only where the display text is ambiguous.
DESCRIPTIVE_STRINGS = {
    OP_FACT: "factorial",
    OP_SQR: "squared",
    OP_PCT: "percent",
    OP_POW: "to the power of",
    OP_SQRT: "square root",
    OP_SUB: "minus",
    FUN_SIN: "sine of",
    FUN_COS: "cosine of",
    FUN_TAN: "tangent of",
    FUN_ARCSIN: "inverse sine of",
    FUN_ARCCOS: "inverse cosine of",
    FUN_ARCTAN: "inverse tangent of",
    FUN_LN: "natural log of",
    FUN_LOG: "log of",
    FUN_EXP: "exponential of",
    LPAREN: "left paren",
    RPAREN: "right paren",
    CONST_PI: "pi",
    DEC_POINT: "point",
}

# Characters accepted from typed or pasted text.
CHAR_KEYS = {
    ".": DEC_POINT,
    "+": OP_ADD,
    "-": OP_SUB,
    MINUS_SIGN: OP_SUB,
    "*": OP_MUL,
    "×": OP_MUL,
    "/": OP_DIV,
    "÷": OP_DIV,
    "^": OP_POW,
    "√": OP_SQRT,
    "!": OP_FACT,
    "²": OP_SQR,
    "%": OP_PCT,
    "(": LPAREN,
    ")": RPAREN,
    "π": CONST_PI,
    "e": CONST_E,
}

FUNCTION_NAMES = {
    "sin": FUN_SIN,
    "cos": FUN_COS,
    "tan": FUN_TAN,
    "asin": FUN_ARCSIN,
    "acos": FUN_ARCCOS,
    "atan": FUN_ARCTAN,
    "ln": FUN_LN,
    "log": FUN_LOG,
    "exp": FUN_EXP,
    "sqrt": OP_SQRT,
    "pi": CONST_PI,
}

_OPERATOR_IDS = frozenset(OPERATOR_STRINGS)


def is_binary(key_id: int) -> bool:
    return key_id in BINARY_OPS


def is_prefix(key_id: int) -> bool:
    """Square root and unary minus."""
    return key_id in PREFIX_OPS


def is_suffix(key_id: int) -> bool:
    """Factorial, percent, and square."""
    return key_id in SUFFIX_OPS


def is_func(key_id: int) -> bool:
    """Functions that introduce an implicit open parenthesis."""
    return key_id in FUNCS


def is_trig_func(key_id: int) -> bool:
    return key_id in TRIG_FUNCS


def is_operator_id(key_id: int) -> bool:
    """True for ids that become Operator tokens."""
    return key_id in _OPERATOR_IDS


def dig_val(key_id: int) -> int | None:
    """Map a digit key to its value, or None for any other key."""
    if DIGIT_0 <= key_id <= DIGIT_9:
        return key_id - DIGIT_0
    return None


def key_for_dig_val(value: int) -> int:
    if not 0 <= value <= 9:
        raise ValueError(f"Not a decimal digit: {value}")
    return DIGIT_0 + value


def to_string(key_id: int) -> str:
    """Display text for a key."""
    if key_id == DEC_POINT:
        return "."
    digit = dig_val(key_id)
    if digit is not None:
        return str(digit)
    try:
        return OPERATOR_STRINGS[key_id]
    except KeyError:
        raise ValueError(f"Unknown key id: {key_id}") from None


def to_descriptive_string(key_id: int) -> str | None:
    """Spoken description, or None if the display text reads correctly."""
    return DESCRIPTIVE_STRINGS.get(key_id)


def key_for_char(char: str) -> int | None:
    """Key for a single typed character, or None if it has no key."""
    if char.isdigit() and char.isascii():
        return key_for_dig_val(int(char))
    return CHAR_KEYS.get(char)


def key_for_function(name: str) -> int | None:
    return FUNCTION_NAMES.get(name)
