"""Unit tests for the default_fail pattern."""

from faultlock.collector import collect_variables
from faultlock.config import config_from_names
from faultlock.context import context_from_source
from faultlock.findings.models import Category, FindingSet
from faultlock.patterns.default_fail import SNIPPET_LIMIT, DefaultFail


def _run_pattern(source: bytes) -> FindingSet:
    """Parse source, run DefaultFail over it, return the findings."""
    ctx = context_from_source(source)
    output = FindingSet()
    DefaultFail(ctx, output, config_from_names(["default_fail"]), collect_variables(ctx)).run()
    return output


def _switch(default_body: str) -> bytes:
    return (
        "void f(int s) {\n"
        "    switch (s) {\n"
        "    case 1:\n"
        "        a();\n"
        "        break;\n"
        f"    default:\n        {default_body}\n"
        "    }\n"
        "}\n"
    ).encode()


def test_default_with_only_break_is_safe():
    assert len(_run_pattern(_switch("break;"))) == 0


def test_default_with_bare_return_is_safe():
    assert len(_run_pattern(_switch("return;"))) == 0


def test_default_with_braced_break_is_safe():
    assert len(_run_pattern(_switch("{ break; }"))) == 0


def test_default_doing_work_detected():
    findings = _run_pattern(_switch("b(); break;"))
    assert len(findings) == 1
    finding = findings[0]
    assert finding.category is Category.DEFAULT_FAIL
    assert finding.start_line == 6
    assert finding.message == '"default: b(); break;" uses a potentially unsafe default statement.'


def test_default_returning_value_detected():
    assert len(_run_pattern(_switch("return -1;"))) == 1


def test_case_labels_ignored():
    source = b"void f(int s) { switch (s) { case 1: a(); case 2: b(); } }"
    assert len(_run_pattern(source)) == 0


def test_long_default_snippet_truncated():
    findings = _run_pattern(_switch("b(); c(); d(); e(); f(); g(); h(); i(); j(); k(); l(); break;"))
    message = findings[0].message
    snippet = message[1 : message.index('" uses')]
    assert len(snippet) == SNIPPET_LIMIT
    assert snippet.endswith("...")


def test_else_doing_work_detected():
    source = b"""\
void f(int x) {
    if (x == 1) {
        a();
    } else {
        b();
    }
}
"""
    findings = _run_pattern(source)
    assert len(findings) == 1
    assert findings[0].start_line == 4
    assert findings[0].message.endswith("uses a potentially unsafe else statement.")
    assert "b();" in findings[0].message


def test_else_with_bare_return_is_safe():
    assert len(_run_pattern(b"void f(int x) { if (x) { a(); } else return; }")) == 0
    assert len(_run_pattern(b"void f(int x) { if (x) { a(); } else { return; } }")) == 0


def test_else_if_is_not_an_else_body():
    source = b"void f(int x) { if (x == 1) { a(); } else if (x == 2) { b(); } }"
    assert len(_run_pattern(source)) == 0


def test_final_else_of_chain_detected():
    source = b"""\
void f(int x) {
    if (x == 1) {
        a();
    } else if (x == 2) {
        b();
    } else {
        c();
    }
}
"""
    findings = _run_pattern(source)
    assert len(findings) == 1
    assert findings[0].start_line == 6


def test_if_without_else_ignored():
    assert len(_run_pattern(b"void f(int x) { if (x) { a(); } }")) == 0
