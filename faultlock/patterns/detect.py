# Missing checksum detection: initialized file-scope data that never takes part in an XOR check

from __future__ import annotations

import logging
from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import get_compact_text
from faultlock.findings.models import Category
from faultlock.literals import parse_int_literal
from faultlock.patterns.base import FaultPattern
from faultlock.patterns.branch import binary_operator

logger = logging.getLogger(__name__)

# XOR-result byte signatures accepted by is_checksum(): all but the last byte
# must be 0xFF, the last one 0xFF or 0x0F.
FULL_BYTE = 0xFF
LAST_BYTE_SIGNATURES = frozenset({0xFF, 0x0F})
_LONG_MASK = (1 << 64) - 1


def _minimal_le_bytes(value: int) -> bytes:
    """Little-endian bytes of value as a sign-extended 64-bit word, high zero bytes dropped."""
    return (value & _LONG_MASK).to_bytes(8, "little").rstrip(b"\x00")


def is_checksum(lhs: str, rhs: str) -> bool:
    """
    Return True when two integer/hex literals XOR to a checksum-like bit pattern.

    Both values are laid out as minimal little-endian byte strings; they must
    be the same length, and their XOR must be 0xFF in every byte except the
    last, which may be 0xFF or 0x0F. Non-literals and malformed literals are
    never checksums.

    Not used by the XOR tracking in Detect; kept for checks on literal pairs.
    """
    try:
        left = parse_int_literal(lhs)
        right = parse_int_literal(rhs)
    except ValueError as exc:
        logger.warning("is_checksum: %s", exc)
        return False
    if left is None or right is None:
        return False
    left_bytes = _minimal_le_bytes(left)
    right_bytes = _minimal_le_bytes(right)
    if not left_bytes or len(left_bytes) != len(right_bytes):
        return False
    xored = [a ^ b for a, b in zip(left_bytes, right_bytes)]
    if any(byte != FULL_BYTE for byte in xored[:-1]):
        return False
    return xored[-1] in LAST_BYTE_SIGNATURES


class Detect(FaultPattern):
    """
    Flags initialized file-scope variables that no XOR expression ever touches.

    Values baked into the image (keys, thresholds, configuration) can be
    corrupted by a fault; without an XOR-based redundancy check nothing would
    notice. Variables come from the collector pre-pass.
    """

    category = Category.DETECT
    name = "Missing checksum verification"
    description = "initialized file-scope data never verified with an XOR checksum"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._verified: list[bool] = [False] * len(self.variables)

    def _mark(self, operand: Optional[TSNode]) -> None:
        if operand is None:
            return
        text = get_compact_text(self.context, operand)
        if not text:
            return
        for i, record in enumerate(self.variables):
            if record.name == text:
                self._verified[i] = True

    def enter_binary_expression(self, node: TSNode, field: Optional[str]) -> None:
        if binary_operator(node) != "^":
            return
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return
        self._mark(left)
        self._mark(right)

    def enter_assignment_expression(self, node: TSNode, field: Optional[str]) -> None:
        if binary_operator(node) != "^=":
            return
        self._mark(node.child_by_field_name("left"))
        self._mark(node.child_by_field_name("right"))

    def finalize(self) -> None:
        for record, verified in zip(self.variables, self._verified):
            if verified:
                continue
            self.report(
                f'Recommended addition of checksum verification for "{record.name} = {record.value}" '
                f"declared in line {record.line}.",
                record.line,
            )
