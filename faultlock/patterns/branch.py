# Trivial branch detection: if-conditions comparing against booleans or low-Hamming-weight integers

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import collapse, get_line_col, get_source_span
from faultlock.findings.models import Category
from faultlock.literals import hamming_weight, is_bool_literal, parse_int_literal
from faultlock.patterns.base import IF_CONDITION, FaultPattern, condition_frame, is_if_condition

logger = logging.getLogger(__name__)

OR_FRAME = "logical_or"
AND_FRAME = "logical_and"

# Relations whose constant operand is checked for bit-complexity
_INTEGER_RELATIONS = frozenset({"==", "<=", ">="})


def binary_operator(node: TSNode) -> Optional[str]:
    op = node.child_by_field_name("operator")
    return op.type if op is not None else None


@dataclass(frozen=True)
class _TempResult:
    """A comparison seen under && or ||, held until the whole condition is known."""

    trivial: bool
    flag: str
    message: str
    line: int


class Branch(FaultPattern):
    """
    Flags if-conditions that a single bit flip can satisfy.

    A comparison is trivial when it tests ``== true/false`` or compares (``==``,
    ``<=``, ``>=``) against an integer whose Hamming weight is below the
    configured sensitivity. Comparisons under ``&&``/``||`` are aggregated per
    condition: an AND group is trivial only if all of its comparisons are, an
    OR group if one is and none is not.
    """

    category = Category.BRANCH
    name = "Trivial branch condition"
    description = "if-conditions testing booleans or low-Hamming-weight integer constants"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sensitivity = self.config.branch_sensitivity
        self._temp_results: list[_TempResult] = []

    def frame_for(self, node: TSNode, field: Optional[str]) -> Optional[str]:
        frame = condition_frame(node, field)
        if frame is None and node.type == "binary_expression":
            op = binary_operator(node)
            if op == "||":
                return OR_FRAME
            if op == "&&":
                return AND_FRAME
        return frame

    def enter_node(self, node: TSNode, field: Optional[str]) -> None:
        if is_if_condition(node, field):
            self._temp_results.clear()
        super().enter_node(node, field)

    def exit_node(self, node: TSNode, field: Optional[str]) -> None:
        super().exit_node(node, field)
        if is_if_condition(node, field):
            self._report_aggregated()

    def enter_binary_expression(self, node: TSNode, field: Optional[str]) -> None:
        if not self.in_if_condition():
            return
        op = binary_operator(node)
        if op not in _INTEGER_RELATIONS:
            return
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return
        text = collapse(get_source_span(self.context, node))
        line, _ = get_line_col(node)
        classified = self._classify(op, get_source_span(self.context, left), get_source_span(self.context, right), text, line)
        if classified is None:
            return
        trivial, message = classified

        logic = self.frames.above(IF_CONDITION)
        if AND_FRAME in logic:
            flag = AND_FRAME
        elif OR_FRAME in logic:
            flag = OR_FRAME
        else:
            if trivial:
                self.report(message, line)
            return
        self._temp_results.append(_TempResult(trivial, flag, message, line))

    def _classify(
        self, op: str, left: str, right: str, text: str, line: int
    ) -> Optional[tuple[bool, str]]:
        """Return (is_trivial, message) for one comparison, None to ignore it."""
        if op == "==" and (is_bool_literal(left) or is_bool_literal(right)):
            return True, f'"{text}" uses a trivial boolean literal in a branch condition.'
        try:
            value = parse_int_literal(left)
            if value is None:
                value = parse_int_literal(right)
        except ValueError as exc:
            logger.warning("Ignoring comparison %r on line %d: %s", text, line, exc)
            return None
        if value is None:
            return False, ""
        weight = hamming_weight(value)
        if weight < self.sensitivity:
            return True, (
                f'"{text}" compares against explicit integer {value} '
                f"(Hamming weight {weight}) instead of a fault-resistant constant."
            )
        return False, ""

    def _report_aggregated(self) -> None:
        trivial_or = sum(1 for r in self._temp_results if r.trivial and r.flag == OR_FRAME)
        trivial_and = sum(1 for r in self._temp_results if r.trivial and r.flag == AND_FRAME)
        plain_or = sum(1 for r in self._temp_results if not r.trivial and r.flag == OR_FRAME)
        plain_and = sum(1 for r in self._temp_results if not r.trivial and r.flag == AND_FRAME)

        # AND groups bind tighter than OR, so they are judged as a whole first.
        and_trivial = trivial_and >= 1 and plain_and == 0
        or_trivial = trivial_or >= 1 and plain_or == 0
        if and_trivial or or_trivial:
            for result in self._temp_results:
                if result.trivial:
                    self.report(result.message, result.line)
        self._temp_results.clear()
