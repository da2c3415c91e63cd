# Double-check detection: single conditional tests with no complementary re-check,
# plus the guard statement that would add one.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import collapse, get_compact_text, get_line_span, get_source_span
from faultlock.findings.models import Category, LineEdit
from faultlock.literals import is_bool_literal, parse_int_literal
from faultlock.patterns.base import CONDITION_FRAMES, IF_CONDITION, FaultPattern, condition_frame
from faultlock.patterns.branch import binary_operator

logger = logging.getLogger(__name__)

RELATIONAL_COMPLEMENTS: dict[str, str] = {
    "<": ">=",
    ">": "<=",
    "<=": ">",
    ">=": "<",
    "==": "!=",
    "!=": "==",
}

# Integer complements are compared as 16-bit words.
COMPLEMENT_MASK = 0xFFFF

ASSIGNMENT_FRAME = "assignment"
INITIALIZER_FRAME = "initializer"
EXPRESSION_FRAME = "expression_statement"
_OWNER_FRAMES = CONDITION_FRAMES + (ASSIGNMENT_FRAME, INITIALIZER_FRAME, EXPRESSION_FRAME)
_STATEMENT_FRAMES = {
    "assignment_expression": ASSIGNMENT_FRAME,
    "init_declarator": INITIALIZER_FRAME,
    "expression_statement": EXPRESSION_FRAME,
}

_SIMPLE_OPERAND_RE = re.compile(r"^[\w.\[\]]+(->[\w.\[\]]+)*$")


def is_complement(original: str, candidate: str) -> bool:
    """
    True when candidate is the complement of original.

    Booleans complement by negation. Integers complement bitwise, truncated to
    16 bits, so both ``-6`` and ``65530`` complement ``5``.
    """
    original_bool = original in ("true", "false")
    candidate_bool = candidate in ("true", "false")
    if original_bool or candidate_bool:
        return original_bool and candidate_bool and candidate != original
    try:
        return (int(candidate) & COMPLEMENT_MASK) == (~int(original) & COMPLEMENT_MASK)
    except ValueError:
        return False


def complement_value(value: str) -> str:
    """Complement of a normalized constant: negated boolean or ``~value`` in decimal."""
    if value == "true":
        return "false"
    if value == "false":
        return "true"
    return str(~int(value))


def _wrapped_in_parens(text: str) -> bool:
    if len(text) < 2 or text[0] != "(" or text[-1] != ")":
        return False
    depth = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                return False
    return True


def bare_operand(text: str) -> str:
    """Operand text without leading ``~``/``!`` and enclosing parentheses."""
    while True:
        stripped = text.lstrip("~!")
        while _wrapped_in_parens(stripped):
            stripped = stripped[1:-1]
        if stripped == text:
            return text
        text = stripped


def normalize_constant(text: str) -> Optional[str]:
    """
    Normalize a constant operand: integers (hex included) to decimal strings,
    booleans to ``"true"``/``"false"``. None when text is not a constant.

    Raises ValueError for malformed integer literals.
    """
    if is_bool_literal(text):
        return text.strip().lower()
    value = parse_int_literal(text)
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Conditional:
    """The equality test of one ``if``, with the line span of the whole statement."""

    variable: str
    relation: str
    value: str
    start_line: int
    end_line: int
    text: str

    def nests_in(self, other: "Conditional") -> bool:
        return other.start_line <= self.start_line and self.end_line <= other.end_line

    def complements(self, other: "Conditional") -> bool:
        return bare_operand(self.variable) == bare_operand(other.variable) and is_complement(
            other.value, self.value
        )


@dataclass
class _OpenIf:
    start_line: int
    end_line: int
    recorded: bool = False


class DoubleCheck(FaultPattern):
    """
    Flags decisions that rest on a single test of a variable against a constant.

    One glitch can flip a single comparison. For every ``if`` whose condition
    tests ``variable ==/!= constant`` the pattern expects a following ``if``
    nested in the same statement (an ``else if`` or an inner check) that tests
    the same variable against the complemented constant. Tests without one get
    a spanning finding and a suggested guard, recorded as a LineEdit that
    appends the guard under the block's opening brace.

    Conditionals are grouped by root: the outermost ``if`` and every ``if``
    nested in it. Matching runs when the walk leaves the root.
    """

    category = Category.DOUBLE_CHECK
    name = "Missing double check"
    description = "single equality tests against constants with no complementary re-check"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.guard_function = self.config.guard_function
        self._open_ifs: list[_OpenIf] = []
        self._conditionals: list[Conditional] = []

    def frame_for(self, node: TSNode, field: Optional[str]) -> Optional[str]:
        frame = condition_frame(node, field)
        if frame is None:
            frame = _STATEMENT_FRAMES.get(node.type)
        return frame

    def enter_if_statement(self, node: TSNode, field: Optional[str]) -> None:
        start, end = get_line_span(node)
        self._open_ifs.append(_OpenIf(start, end))

    def exit_if_statement(self, node: TSNode, field: Optional[str]) -> None:
        closed = self._open_ifs.pop()
        if self._open_ifs:
            return
        logger.debug(
            "Root conditional at lines %d-%d closed with %d recorded test(s)",
            closed.start_line,
            closed.end_line,
            len(self._conditionals),
        )
        self._match_conditionals()
        self._conditionals.clear()

    def enter_binary_expression(self, node: TSNode, field: Optional[str]) -> None:
        relation = binary_operator(node)
        if relation not in ("==", "!="):
            return
        # Tests inside assignments or initializers of the condition are incidental.
        if self.frames.nearest(_OWNER_FRAMES) != IF_CONDITION or not self._open_ifs:
            return
        current = self._open_ifs[-1]
        if current.recorded:
            return
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return
        left_text = get_compact_text(self.context, left)
        right_text = get_compact_text(self.context, right)
        try:
            value = normalize_constant(right_text)
            variable = left_text
            if value is None:
                value = normalize_constant(left_text)
                variable = right_text
        except ValueError as exc:
            logger.warning(
                "Skipping condition on line %d: %s", node.start_point[0] + 1, exc
            )
            return
        if value is None:
            return
        current.recorded = True
        self._conditionals.append(
            Conditional(
                variable=variable,
                relation=relation,
                value=value,
                start_line=current.start_line,
                end_line=current.end_line,
                text=collapse(get_source_span(self.context, node)),
            )
        )

    def _match_conditionals(self) -> None:
        conditionals = self._conditionals
        j = 0
        while j < len(conditionals):
            current = conditionals[j]
            following = conditionals[j + 1] if j + 1 < len(conditionals) else None
            if following is not None and following.nests_in(current) and following.complements(current):
                logger.debug(
                    "Line %d double-checked by line %d", current.start_line, following.start_line
                )
                j += 2
                continue
            self._report_missing(current)
            j += 1

    def _report_missing(self, conditional: Conditional) -> None:
        self.report_span(
            f'Recommended addition of complement check for "{conditional.text}" at lines '
            f"{conditional.start_line} to {conditional.end_line}. See replacements!",
            conditional.start_line,
            conditional.end_line,
        )
        brace_line = self._find_opening_brace(conditional)
        if brace_line is None:
            logger.debug("No opening brace for if at line %d; no guard inserted", conditional.start_line)
            return
        self.edits.append(LineEdit(line=brace_line, text=self._guard_text(conditional)))

    def _find_opening_brace(self, conditional: Conditional) -> Optional[int]:
        for number in range(conditional.start_line, conditional.end_line + 1):
            if self.context.line(number).rstrip().endswith("{"):
                return number
        return None

    def _declared_bool(self, name: str, before_line: int) -> bool:
        pattern = re.compile(r"\b(?:bool|_Bool)\b[^;=(){}]*?\b" + re.escape(name) + r"\b")
        for number in range(before_line, 0, -1):
            if pattern.search(self.context.line(number)):
                return True
        return False

    def _guard_text(self, conditional: Conditional) -> str:
        name = bare_operand(conditional.variable)
        operand = name if _SIMPLE_OPERAND_RE.match(name) else f"({name})"
        prefix = "!" if self._declared_bool(name, conditional.start_line) else "~"
        relation = RELATIONAL_COMPLEMENTS[conditional.relation]
        value = complement_value(conditional.value)

        start_text = self.context.line(conditional.start_line)
        indent = start_text[: len(start_text) - len(start_text.lstrip())] + "    "
        return (
            f"{indent}if({prefix}{operand} {relation} {value}){{\n"
            f"{indent}    {self.guard_function}();\n"
            f"{indent}}}"
        )
