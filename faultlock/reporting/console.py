# Rich console output: findings tables, patched-source diffs and syntax-tree views.

from __future__ import annotations

import difflib
import json
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
from rich.tree import Tree
from tree_sitter import Node as TSNode

from faultlock.config import PATTERN_REGISTRY
from faultlock.context import FileContext, collapse, get_source_span
from faultlock.engine import AnalysisResult
from faultlock.findings.models import Category, FindingScope

# Remediation hints per category (shown with --verbose)
CATEGORY_REMEDIATIONS: dict[str, str] = {
    Category.BRANCH.value: (
        "Compare against constants with many set bits (e.g. 0x3CA5 instead of 1) "
        "and avoid testing booleans directly."
    ),
    Category.BYPASS.value: (
        "Store the call result in a variable and test it twice, so skipping one "
        "instruction cannot take the branch."
    ),
    Category.CONSTANT_CODING.value: (
        "Encode states and status codes with values far apart in Hamming distance."
    ),
    Category.DEFAULT_FAIL.value: (
        "Make default/else paths fail safe: signal a fault or return without acting."
    ),
    Category.DETECT.value: (
        "Store a complemented copy and verify it with XOR before trusting the value."
    ),
    Category.DOUBLE_CHECK.value: (
        "Re-test the condition with the complemented constant inside the guarded "
        "block; see the suggested replacements."
    ),
}

CATEGORY_STYLE: dict[str, str] = {
    Category.BRANCH.value: "bold yellow",
    Category.BYPASS.value: "bold red",
    Category.CONSTANT_CODING.value: "yellow",
    Category.DEFAULT_FAIL.value: "bold magenta",
    Category.DETECT.value: "bold blue",
    Category.DOUBLE_CHECK.value: "bold red",
}

DEFAULT_CATEGORY_STYLE = "bold white"
TREE_DEPTH_LIMIT = 12


def _category_style(category: str) -> str:
    return CATEGORY_STYLE.get(category, DEFAULT_CATEGORY_STYLE)


def print_results(
    results: Sequence[AnalysisResult],
    console: Optional[Console] = None,
    verbose: bool = False,
    show_patched: bool = False,
) -> None:
    """
    Print one findings table per analyzed file, then a summary.

    With verbose, remediation hints follow each table; with show_patched, a
    unified diff of the suggested double-check guards is printed per file.
    """
    console = console or Console()
    total = sum(len(r.findings) for r in results)

    if total == 0 and not any(r.failed_patterns for r in results):
        console.print(
            Panel(
                f"[green]No fault-injection weaknesses found in {len(results)} file(s).[/green]",
                title="faultlock",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    for result in results:
        if not result.findings and not result.failed_patterns:
            continue
        console.print()
        console.print(
            Panel(
                f"[bold cyan]{result.path}[/bold cyan]",
                box=box.SIMPLE_HEAD,
                border_style="blue",
                padding=(0, 1),
            )
        )
        if result.failed_patterns:
            console.print(
                f"  [bold red]Pattern(s) failed:[/bold red] {', '.join(result.failed_patterns)}"
            )

        table = Table(show_header=True, header_style="bold magenta", box=box.SIMPLE, padding=(0, 1))
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("End", justify="right", style="dim", width=5)
        table.add_column("Category", width=16)
        table.add_column("Message", style="white")
        for finding in result.findings:
            category = finding.category.value
            end = str(finding.end_line) if finding.scope is FindingScope.SPANNING else ""
            table.add_row(
                str(finding.start_line),
                end,
                Text(category, style=_category_style(category)),
                Text(finding.message),
            )
        console.print(table)

        if verbose:
            seen: list[str] = []
            for finding in result.findings:
                category = finding.category.value
                if category not in seen:
                    seen.append(category)
                    hint = escape(f"[Fix] [{category}]")
                    console.print(f"  [dim]{hint}[/dim] {CATEGORY_REMEDIATIONS[category]}")

        if show_patched and result.edits:
            print_patched_diff(result, console)

    _print_summary(results, console)


def print_patched_diff(result: AnalysisResult, console: Console) -> None:
    """Show the suggested guards as a unified diff against the original source."""
    diff = difflib.unified_diff(
        "\n".join(result.context.lines).splitlines(keepends=False),
        "\n".join(result.patched_lines).splitlines(keepends=False),
        fromfile=f"{result.path}",
        tofile=f"{result.path} (with double checks)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", theme="ansi_dark", background_color="default"))


def _print_summary(results: Sequence[AnalysisResult], console: Console) -> None:
    by_category: dict[str, int] = {}
    for result in results:
        for finding in result.findings:
            category = finding.category.value
            by_category[category] = by_category.get(category, 0) + 1

    total = sum(by_category.values())
    parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold] in {len(results)} file(s)"]
    for category in PATTERN_REGISTRY:
        if category in by_category:
            parts.append(f"[{_category_style(category)}]{by_category[category]} {category}[/]")

    console.print()
    console.print(Panel(" | ".join(parts), title="Summary", border_style="yellow", box=box.ROUNDED))


def print_patterns(console: Optional[Console] = None) -> None:
    """List the available fault patterns."""
    console = console or Console()
    table = Table(title="Fault patterns", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Pattern")
    table.add_column("Description", style="white")
    for name, cls in PATTERN_REGISTRY.items():
        table.add_row(name, cls.name, cls.description)
    console.print(table)


def _add_tree_nodes(branch: Tree, node: TSNode, context: FileContext, depth: int) -> None:
    for child in node.named_children:
        label = f"[bold]{child.type}[/bold] [dim]{child.start_point[0] + 1}[/dim]"
        if child.named_child_count == 0:
            label += "  " + escape(collapse(get_source_span(context, child)))
        sub = branch.add(label)
        if depth < TREE_DEPTH_LIMIT:
            _add_tree_nodes(sub, child, context, depth + 1)


def print_syntax_tree(context: FileContext, console: Optional[Console] = None) -> None:
    """Render the named nodes of the parsed tree, with line numbers and leaf text."""
    console = console or Console()
    tree = Tree(f"[bold cyan]{context.path}[/bold cyan]")
    _add_tree_nodes(tree, context.root_node, context, 1)
    console.print(tree)


def results_to_json(results: Sequence[AnalysisResult]) -> str:
    """Serialize findings per file, plus the suggested line edits when there are any."""
    payload = []
    for result in results:
        entry = {
            "path": str(result.path),
            "findings": [f.model_dump(mode="json", exclude={"path"}) for f in result.findings],
            "failed_patterns": result.failed_patterns,
        }
        if result.edits:
            entry["edits"] = [e.model_dump(mode="json") for e in result.edits]
        payload.append(entry)
    return json.dumps(payload, indent=2)
