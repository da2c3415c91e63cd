# C literal helpers: integer/hex/boolean recognition and Hamming arithmetic on constants.

from __future__ import annotations

import re
from typing import Optional

from faultlock.context import compact

_INT_RE = re.compile(r"^(-?)(0[xX][0-9a-fA-F]+|0[bB][01]+|0[0-7]*|[1-9][0-9]*)[uUlL]*$")
# A single token starting with a digit that is not a float is meant to be an integer.
_NUMERIC_TOKEN_RE = re.compile(r"^-?\d\w*$")
_FLOAT_RE = re.compile(r"^-?(\d+\.\d*|\.\d+|\d+[eE][-+]?\d+|\d+\.?\d*[eE][-+]?\d+)[fFlL]?$")
_BOOL_LITERALS = frozenset({"true", "false"})

WORD_BITS = 32


def is_bool_literal(text: str) -> bool:
    """True for ``true``/``false`` in any case (covers TRUE/FALSE macros)."""
    return compact(text).lower() in _BOOL_LITERALS


def parse_int_literal(text: str) -> Optional[int]:
    """
    Parse a C integer literal (decimal, hex, octal or 0b binary; optional sign and u/l suffixes).

    Returns None when text is not an integer literal at all (identifiers, floats,
    expressions). Raises ValueError when text looks like an integer literal but
    is malformed, e.g. ``0x1G`` or ``09``. Expressions such as ``2*n`` or
    ``1<<3`` are not literals.
    """
    t = compact(text)
    while len(t) > 2 and t.startswith("(") and t.endswith(")"):
        t = t[1:-1]
    if not _NUMERIC_TOKEN_RE.match(t) or _FLOAT_RE.match(t):
        return None
    m = _INT_RE.match(t)
    if m is None:
        raise ValueError(f"malformed integer literal: {text!r}")
    sign, digits = m.group(1), m.group(2)
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif digits[:2] in ("0b", "0B"):
        value = int(digits[2:], 2)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits[1:], 8)
    else:
        value = int(digits, 10)
    return -value if sign else value


def is_int_literal(text: str) -> bool:
    """True when text parses as an integer literal; malformed literals count as False."""
    try:
        return parse_int_literal(text) is not None
    except ValueError:
        return False


def hamming_weight(value: int, bits: int = WORD_BITS) -> int:
    """Number of set bits of value as a ``bits``-wide two's-complement word."""
    return bin(value & ((1 << bits) - 1)).count("1")


def hamming_distance(a: int, b: int, bits: int = WORD_BITS) -> int:
    """Number of bit positions in which a and b differ."""
    return hamming_weight(a ^ b, bits)
