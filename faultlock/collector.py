# Variable collection pre-pass: harvest initialized top-level declarations.

from __future__ import annotations

import logging
from typing import Iterator, Optional

from pydantic import BaseModel, Field
from tree_sitter import Node as TSNode

from faultlock.context import FileContext, collapse, get_line_col, get_source_span

logger = logging.getLogger(__name__)


class VariableRecord(BaseModel):
    """A file-scope variable declared with an initializer (e.g. ``int key = 0x5A;``)."""

    name: str
    declared_type: str
    line: int = Field(..., ge=1)
    value: str = ""

    model_config = {"frozen": True}


def _declarator_name(node: Optional[TSNode], context: FileContext) -> Optional[str]:
    """Bare identifier behind pointer/array/parenthesized declarators, or None."""
    while node is not None:
        if node.type == "identifier":
            return get_source_span(context, node)
        if node.type == "function_declarator":
            return None
        node = node.child_by_field_name("declarator")
    return None


def _is_pointer(node: Optional[TSNode]) -> bool:
    return node is not None and node.type == "pointer_declarator"


# Blocks that group file-scope declarations without opening a scope.
_FILE_SCOPE_CONTAINERS = frozenset(
    {
        "preproc_if",
        "preproc_ifdef",
        "preproc_elif",
        "preproc_elifdef",
        "preproc_else",
        "linkage_specification",
        "declaration_list",
    }
)


def _file_scope_declarations(root: TSNode) -> Iterator[TSNode]:
    """Yield file-scope declarations in source order, looking inside #if blocks and extern "C"."""
    pending = list(reversed(root.named_children))
    while pending:
        node = pending.pop()
        if node.type == "declaration":
            yield node
        elif node.type in _FILE_SCOPE_CONTAINERS:
            pending.extend(reversed(node.named_children))


def collect_variables(context: FileContext) -> list[VariableRecord]:
    """
    Return one VariableRecord per initialized declarator in file-scope declarations.

    Declarations inside preprocessor conditionals (header guards, #ifdef
    configuration blocks) and extern "C" blocks are file-scope too.

    Function prototypes are not variables and declarators without an
    initializer are not recorded. Anything the walk cannot make sense of is
    skipped rather than raised, so the result under-approximates.
    """
    records: list[VariableRecord] = []
    for decl in _file_scope_declarations(context.root_node):
        type_node = decl.child_by_field_name("type")
        type_text = collapse(get_source_span(context, type_node)) if type_node else ""
        line, _ = get_line_col(decl)
        for declarator in decl.children_by_field_name("declarator"):
            if declarator.type != "init_declarator":
                continue
            target = declarator.child_by_field_name("declarator")
            value = declarator.child_by_field_name("value")
            name = _declarator_name(target, context)
            if name is None or value is None:
                logger.debug("Skipping declarator on line %d: no variable name", line)
                continue
            records.append(
                VariableRecord(
                    name=name,
                    declared_type=type_text + ("*" if _is_pointer(target) else ""),
                    line=line,
                    value=collapse(get_source_span(context, value)),
                )
            )
    logger.debug("Collected %d initialized variable(s) from %s", len(records), context.path)
    return records
