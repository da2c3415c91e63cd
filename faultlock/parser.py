# Tree-sitter setup for C: build the parser and turn source bytes into a syntax tree.

import logging
from pathlib import Path
from typing import Optional

import tree_sitter
from tree_sitter import Language
from tree_sitter_c import language as _c_language_capsule

logger = logging.getLogger(__name__)

_C_LANGUAGE = Language(_c_language_capsule())


def get_c_language() -> Language:
    """Return the Tree-sitter Language object for C."""
    return _C_LANGUAGE


def create_parser() -> tree_sitter.Parser:
    """Create a Tree-sitter Parser configured for C."""
    return tree_sitter.Parser(_C_LANGUAGE)


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse C source bytes into a syntax tree.

    The tree is returned even when the grammar had to recover from syntax
    errors; callers check ``tree.root_node.has_error``.
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning("Parse completed with errors: root=%s", tree.root_node.type)
    else:
        logger.debug("Parse succeeded: root=%s", tree.root_node.type)
    return tree


def parse_file(path: Path, parser: Optional[tree_sitter.Parser] = None) -> Optional[tree_sitter.Tree]:
    """Parse a C file, or return None (and log) when it cannot be read."""
    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None
    return parse_bytes(source, parser=parser)
