"""Tests for faultlock.context: FileContext, the line buffer and node helpers."""

from pathlib import Path

from faultlock.context import (
    FileContext,
    collapse,
    compact,
    context_from_source,
    count_tree_stats,
    create_context,
    get_compact_text,
    get_line_col,
    get_line_span,
    get_source_span,
)
from faultlock.parser import create_parser, parse_bytes


def test_count_tree_stats():
    tree = parse_bytes(b"int main(void) { if (a) { } if (b) { } return 0; }")
    nodes, funcs, ifs = count_tree_stats(tree.root_node)
    assert nodes > 1
    assert funcs == 1
    assert ifs == 2


def test_create_context_reads_file(tmp_path):
    c_file = tmp_path / "main.c"
    c_file.write_bytes(b"int main(void) {\n    return 0;\n}\n")
    ctx = create_context(c_file)
    assert ctx is not None
    assert ctx.path == c_file
    assert ctx.has_parse_errors is False
    assert ctx.lines == ["int main(void) {", "    return 0;", "}"]


def test_create_context_nonexistent():
    assert create_context(Path("/nonexistent/file.c")) is None


def test_create_context_malformed_still_returns_context(tmp_path):
    c_file = tmp_path / "bad.c"
    c_file.write_bytes(b"int main( { return 0; }\n")
    ctx = create_context(c_file)
    assert ctx is not None
    assert ctx.has_parse_errors is True


def test_line_is_one_based_and_bounded():
    ctx = context_from_source("int a;\nint b;\n")
    assert ctx.line(1) == "int a;"
    assert ctx.line(2) == "int b;"
    assert ctx.line(0) == ""
    assert ctx.line(3) == ""


def test_context_from_source_accepts_str_and_bytes():
    from_str = context_from_source("int x = 1;")
    from_bytes = context_from_source(b"int x = 1;", parser=create_parser())
    assert from_str.source == from_bytes.source
    assert from_str.path == Path("<memory>")


def test_get_source_span_and_compact_text():
    source = b"int x = ( 4 +  2 );"
    tree = parse_bytes(source)
    ctx = FileContext(path=Path("x.c"), source=source, tree=tree)
    decl = ctx.root_node.named_children[0]
    assert get_source_span(ctx, decl) == "int x = ( 4 +  2 );"
    assert get_compact_text(ctx, decl) == "intx=(4+2);"


def test_compact_and_collapse():
    assert compact(" a ==\n  b ") == "a==b"
    assert collapse(" if (x)\n    {  y; }") == "if (x) { y; }"


def test_get_line_col_and_span():
    ctx = context_from_source(b"int x;\nvoid f(void) {\n  return;\n}\n")
    func = ctx.root_node.named_children[1]
    assert get_line_col(func) == (2, 1)
    assert get_line_col(func, one_based=False) == (1, 0)
    assert get_line_span(func) == (2, 4)
