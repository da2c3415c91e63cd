# Per-file analysis context: path, source bytes, syntax tree and the source-line buffer.
# Also hosts the node helpers every fault pattern uses for text and positions.

import logging
import re
from pathlib import Path
from typing import Optional, Union

from faultlock.parser import create_parser, parse_bytes
from tree_sitter import Parser, Tree
from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def _count_nodes(node: TSNode) -> int:
    count = 1
    for child in node.children:
        count += _count_nodes(child)
    return count


def _count_kind(node: TSNode, kind: str) -> int:
    count = 1 if node.type == kind else 0
    for child in node.children:
        count += _count_kind(child, kind)
    return count


def count_tree_stats(root: TSNode) -> tuple[int, int, int]:
    """Return (node count, function definition count, if-statement count)."""
    return (
        _count_nodes(root),
        _count_kind(root, "function_definition"),
        _count_kind(root, "if_statement"),
    )


class FileContext:
    """
    Per-file state for one analysis run.

    ``lines`` is the source-line buffer: the decoded source split into lines,
    addressed 1-based through :meth:`line` so it lines up with tree rows + 1.
    Patterns read it; only the engine produces a patched copy of it.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors
        self.lines: list[str] = source.decode("utf-8", errors="replace").splitlines()

    @property
    def root_node(self) -> TSNode:
        return self.tree.root_node

    def line(self, number: int) -> str:
        """Return the 1-based source line, or an empty string past either end."""
        if 1 <= number <= len(self.lines):
            return self.lines[number - 1]
        return ""


def get_source_span(context: FileContext, node: TSNode) -> str:
    """Return the source text covered by node (bad UTF-8 is replaced, not raised)."""
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_compact_text(context: FileContext, node: TSNode) -> str:
    """Source text of node with all whitespace removed, for textual comparisons."""
    return compact(get_source_span(context, node))


def compact(text: str) -> str:
    return _WHITESPACE_RE.sub("", text)


def collapse(text: str) -> str:
    """Fold runs of whitespace into single spaces, for one-line messages."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col); by default this returns 1-based values.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def get_line_span(node: TSNode) -> tuple[int, int]:
    """Return the 1-based (start line, end line) covered by node."""
    return node.start_point[0] + 1, node.end_point[0] + 1


def context_from_source(
    source: Union[bytes, str],
    path: Path = Path("<memory>"),
    parser: Optional[Parser] = None,
) -> FileContext:
    """Parse in-memory C source into a FileContext."""
    if isinstance(source, str):
        source = source.encode("utf-8")
    tree = parse_bytes(source, parser=parser)
    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=tree.root_node.has_error,
    )


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a C file and parse it into a FileContext.

    - Unreadable file (permission, missing): returns None and logs an error.
    - Malformed C: still returns a context with has_parse_errors=True.
    """
    if parser is None:
        parser = create_parser()

    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None

    context = context_from_source(source, path=path, parser=parser)
    if context.has_parse_errors:
        logger.warning("File %s parsed with syntax errors; tree may be incomplete", path)

    node_count, func_count, if_count = count_tree_stats(context.root_node)
    logger.info(
        "Parsed %s: %d nodes, %d function(s), %d if-statement(s)%s",
        path,
        node_count,
        func_count,
        if_count,
        " (with parse errors)" if context.has_parse_errors else "",
    )
    return context
