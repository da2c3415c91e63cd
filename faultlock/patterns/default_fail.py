# Default-fail detection: switch defaults and else branches that do real work when reached

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from faultlock.context import collapse, get_line_col, get_source_span
from faultlock.findings.models import Category
from faultlock.patterns.base import FaultPattern

SNIPPET_LIMIT = 60


def _statements(node: TSNode) -> list[TSNode]:
    return [c for c in node.named_children if c.type != "comment"]


def _body(statements: list[TSNode]) -> list[TSNode]:
    """Unwrap a lone ``{ ... }`` block into the statements it holds."""
    if len(statements) == 1 and statements[0].type == "compound_statement":
        return _statements(statements[0])
    return statements


def _is_bare_return(node: TSNode) -> bool:
    return node.type == "return_statement" and not _statements(node)


class DefaultFail(FaultPattern):
    """
    Flags fallback paths that execute code when every expected case was skipped.

    A fault that corrupts the selector lands in ``default:`` or ``else``; those
    paths are only considered safe when they do nothing (``break;`` for a
    default, a bare ``return;`` for either).
    """

    category = Category.DEFAULT_FAIL
    name = "Unsafe default fallback"
    description = "switch defaults and else branches that run code instead of failing safe"

    def _snippet(self, node: TSNode) -> str:
        text = collapse(get_source_span(self.context, node))
        if len(text) > SNIPPET_LIMIT:
            text = text[: SNIPPET_LIMIT - 3] + "..."
        return text

    def enter_case_statement(self, node: TSNode, field: Optional[str]) -> None:
        if node.child_count == 0 or node.children[0].type != "default":
            return
        body = _body(_statements(node))
        if not body:
            return
        if len(body) == 1 and (body[0].type == "break_statement" or _is_bare_return(body[0])):
            return
        line, _ = get_line_col(node)
        self.report(f'"{self._snippet(node)}" uses a potentially unsafe default statement.', line)

    def enter_if_statement(self, node: TSNode, field: Optional[str]) -> None:
        alternative = node.child_by_field_name("alternative")
        if alternative is None:
            return
        if alternative.type == "else_clause":
            else_node = alternative
            branch = _statements(alternative)
            if not branch:
                return
            branch_node = branch[0]
        else:
            # Older grammars attach the else statement directly to the if_statement.
            else_node = next((c for c in node.children if c.type == "else"), alternative)
            branch_node = alternative
        if branch_node.type == "if_statement":
            return
        body = _body([branch_node])
        if len(body) == 1 and _is_bare_return(body[0]):
            return
        line, _ = get_line_col(else_node)
        snippet_node = alternative if alternative.type == "else_clause" else branch_node
        self.report(f'"{self._snippet(snippet_node)}" uses a potentially unsafe else statement.', line)
