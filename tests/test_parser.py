"""Tests for the tree-sitter C parser wrapper."""

import logging
from pathlib import Path

from faultlock.parser import (
    create_parser,
    get_c_language,
    parse_bytes,
    parse_file,
)


def test_get_c_language_returns_language():
    """get_c_language() returns a tree-sitter Language object."""
    assert get_c_language()


def test_create_parser_returns_parser():
    """create_parser() returns a Parser with the C language set."""
    parser = create_parser()
    assert parser is not None
    assert parser.language is not None


def test_parse_bytes_success(caplog):
    """Valid C parses into a translation_unit without errors."""
    source = b"int main(void) { if (x == 5) { return 1; } return 0; }"
    with caplog.at_level(logging.DEBUG):
        tree = parse_bytes(source, parser=create_parser())
    assert tree.root_node.type == "translation_unit"
    assert not tree.root_node.has_error
    assert "Parse succeeded" in caplog.text


def test_parse_bytes_invalid_c_logs_warning(caplog):
    """Broken C still yields a tree, and the error is logged."""
    with caplog.at_level(logging.WARNING):
        tree = parse_bytes(b"int main( { broken")
    assert tree.root_node is not None
    if tree.root_node.has_error:
        assert "errors" in caplog.text


def test_parse_file_sample_c():
    """The bundled sample parses cleanly."""
    sample_path = Path(__file__).parent / "sample.c"
    tree = parse_file(sample_path)
    assert tree is not None
    assert tree.root_node.type == "translation_unit"
    assert not tree.root_node.has_error


def test_parse_file_nonexistent(caplog):
    """parse_file() on a missing path returns None and logs an error."""
    with caplog.at_level(logging.ERROR):
        tree = parse_file(Path("/nonexistent/sample.c"))
    assert tree is None
    assert "Failed to read" in caplog.text
