# Constant coding detection: #define and enum constants that are cheap to forge with a bit flip

from __future__ import annotations

import logging
from itertools import combinations
from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import collapse, get_line_col, get_source_span
from faultlock.findings.models import Category
from faultlock.literals import hamming_distance, hamming_weight, parse_int_literal
from faultlock.patterns.base import FaultPattern

logger = logging.getLogger(__name__)


class ConstantCoding(FaultPattern):
    """
    Flags constants whose bit patterns are too close to zero or to each other.

    Status codes and states such as ``0``/``1`` can be turned into one another
    by flipping one or two bits. Numeric ``#define``s and enumerators are
    reported when their Hamming weight is below the sensitivity; two
    enumerators of the same enum are reported when they differ in fewer bits
    than that.
    """

    category = Category.CONSTANT_CODING
    name = "Weak constant coding"
    description = "#define and enum constants with low Hamming weight or distance"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sensitivity = self.config.constant_sensitivity

    def _parse(self, node: TSNode, line: int) -> Optional[int]:
        text = get_source_span(self.context, node)
        try:
            return parse_int_literal(text)
        except ValueError as exc:
            logger.warning("Ignoring constant on line %d: %s", line, exc)
            return None

    def enter_preproc_def(self, node: TSNode, field: Optional[str]) -> None:
        name = node.child_by_field_name("name")
        value_node = node.child_by_field_name("value")
        if name is None or value_node is None:
            return
        line, _ = get_line_col(node)
        value = self._parse(value_node, line)
        if value is None:
            return
        weight = hamming_weight(value)
        if weight < self.sensitivity:
            text = collapse(f"#define {get_source_span(self.context, name)} {get_source_span(self.context, value_node)}")
            self.report(
                f'"{text}" has Hamming weight {weight}; use a constant with more set bits.',
                line,
            )

    def enter_enumerator_list(self, node: TSNode, field: Optional[str]) -> None:
        members: list[tuple[str, int, int]] = []
        next_value: Optional[int] = 0
        for enumerator in node.named_children:
            if enumerator.type != "enumerator":
                continue
            name_node = enumerator.child_by_field_name("name")
            if name_node is None:
                continue
            line, _ = get_line_col(enumerator)
            value_node = enumerator.child_by_field_name("value")
            value = self._parse(value_node, line) if value_node is not None else next_value
            next_value = value + 1 if value is not None else None
            if value is None:
                continue
            members.append((get_source_span(self.context, name_node), value, line))

        for name, value, line in members:
            weight = hamming_weight(value)
            if weight < self.sensitivity:
                self.report(
                    f'"{name} = {value}" has Hamming weight {weight}; use a constant with more set bits.',
                    line,
                )
        strong = [m for m in members if hamming_weight(m[1]) >= self.sensitivity]
        for (first, a, _), (second, b, line) in combinations(strong, 2):
            distance = hamming_distance(a, b)
            if distance < self.sensitivity:
                self.report(
                    f'"{first}" and "{second}" differ in only {distance} bit(s); '
                    f"a fault can turn one into the other.",
                    line,
                )
