# Bypassable condition detection: function calls made inside if-conditions

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import collapse, get_line_col, get_source_span
from faultlock.findings.models import Category
from faultlock.patterns.base import FaultPattern, is_if_condition, unwrap_parens


class Bypass(FaultPattern):
    """A guard function called inline in an if-condition is one skippable instruction away from bypass."""

    category = Category.BYPASS
    name = "Bypassable condition"
    description = "function calls inside if-conditions that a fault can skip"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._condition_text = ""

    def enter_node(self, node: TSNode, field: Optional[str]) -> None:
        if is_if_condition(node, field):
            self._condition_text = collapse(get_source_span(self.context, unwrap_parens(node)))
        super().enter_node(node, field)

    def enter_call_expression(self, node: TSNode, field: Optional[str]) -> None:
        if not self.in_if_condition():
            return
        call_text = collapse(get_source_span(self.context, node))
        line, _ = get_line_col(node)
        self.report(
            f'The condition "{self._condition_text}" contains a function call '
            f'"{call_text}", which may be bypassed.',
            line,
        )
