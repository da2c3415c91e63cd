from __future__ import annotations

"""
Typer CLI entry point: find C files, run the fault patterns, report.

    faultlock analyze firmware/ --pattern double_check --show-patched
    faultlock patterns

Exit status is 0 when nothing was found, 1 when any finding was reported and
2 for usage errors (Typer's default).
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from faultlock.config import (
    DEFAULT_BRANCH_SENSITIVITY,
    DEFAULT_CONSTANT_SENSITIVITY,
    DEFAULT_GUARD_FUNCTION,
    PATTERN_REGISTRY,
    Config,
    config_from_names,
)
from faultlock.context import create_context
from faultlock.engine import AnalysisResult, run_fault_patterns
from faultlock.parser import create_parser
from faultlock.reporting.console import (
    print_patterns,
    print_results,
    print_syntax_tree,
    results_to_json,
)
from faultlock.traversal import find_source_files

logger = logging.getLogger(__name__)

app = typer.Typer(help="faultlock - fault-injection weakness analysis for C source files.")


class OutputFormat(str, Enum):
    text = "text"
    json = "json"


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _collect_c_files(target: Path, include_headers: bool) -> List[Path]:
    """
    Resolve a target path into the list of files to analyze.

    - A .c (or, with include_headers, .h) file is analyzed on its own
    - A directory is searched recursively via traversal.find_source_files()
    """
    if target.is_file():
        allowed = {".c", ".h"} if include_headers else {".c"}
        if target.suffix.lower() not in allowed:
            raise typer.BadParameter(f"Target file must have .c extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_source_files(target, include_headers=include_headers)
        if not files:
            logger.warning("No C sources found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _build_config(
    patterns: Optional[List[str]],
    sensitivity: int,
    constant_sensitivity: int,
    guard: str,
) -> Config:
    names = patterns if patterns else list(PATTERN_REGISTRY)
    try:
        return config_from_names(
            names,
            branch_sensitivity=sensitivity,
            constant_sensitivity=constant_sensitivity,
            guard_function=guard,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="C file or directory to analyze.",
    ),
    pattern: Optional[List[str]] = typer.Option(
        None,
        "--pattern",
        "-p",
        help="Pattern to run (repeatable). Defaults to all; see `faultlock patterns`.",
    ),
    sensitivity: int = typer.Option(
        DEFAULT_BRANCH_SENSITIVITY,
        "--sensitivity",
        "-s",
        help="Hamming-weight threshold below which branch constants are trivial.",
    ),
    constant_sensitivity: int = typer.Option(
        DEFAULT_CONSTANT_SENSITIVITY,
        "--constant-sensitivity",
        help="Hamming weight/distance threshold for #define and enum constants.",
    ),
    guard: str = typer.Option(
        DEFAULT_GUARD_FUNCTION,
        "--guard",
        help="Function called by suggested double-check guards.",
    ),
    output_format: OutputFormat = typer.Option(OutputFormat.text, "--format", "-f"),
    headers: bool = typer.Option(False, "--headers", help="Also analyze .h files."),
    show_patched: bool = typer.Option(
        False, "--show-patched", help="Show suggested double-check guards as a diff."
    ),
    show_tree: bool = typer.Option(False, "--show-tree", help="Print the parsed syntax tree."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and fix hints."),
) -> None:
    """Analyze a single C file or every C file under a directory."""
    _configure_logging(verbose)
    config = _build_config(pattern, sensitivity, constant_sensitivity, guard)
    files = _collect_c_files(target, headers)

    parser = create_parser()
    console = Console()
    results: List[AnalysisResult] = []
    for path in files:
        ctx = create_context(path, parser=parser)
        if ctx is None:
            # Unreadable; already logged by create_context
            continue
        if show_tree:
            print_syntax_tree(ctx, console)
        results.append(run_fault_patterns(ctx, config))

    if output_format is OutputFormat.json:
        typer.echo(results_to_json(results))
    else:
        print_results(results, console=console, verbose=verbose, show_patched=show_patched)

    if any(result.findings for result in results):
        raise typer.Exit(code=1)


@app.command()
def patterns() -> None:
    """List the available fault patterns."""
    print_patterns()


def main() -> None:
    """Entry point for the `faultlock` script and `python -m faultlock.main`."""
    app()


if __name__ == "__main__":
    main()
