# Analysis engine: run the enabled fault patterns over one file and collect the results.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from tree_sitter import Parser

from faultlock.collector import VariableRecord, collect_variables
from faultlock.config import Config, get_default_config, get_enabled_patterns
from faultlock.context import FileContext, create_context
from faultlock.findings.models import FindingSet, LineEdit

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one run produces for one file."""

    context: FileContext
    findings: FindingSet
    variables: Sequence[VariableRecord] = ()
    edits: list[LineEdit] = field(default_factory=list)
    patched_lines: list[str] = field(default_factory=list)
    failed_patterns: list[str] = field(default_factory=list)

    @property
    def path(self) -> Path:
        return self.context.path

    @property
    def patched_source(self) -> str:
        return "\n".join(self.patched_lines) + ("\n" if self.patched_lines else "")


def apply_edits(lines: Sequence[str], edits: Sequence[LineEdit]) -> list[str]:
    """
    Return a copy of lines with every edit appended to its target line.

    Edits only ever append, so line count and numbering stay valid. Edits on
    the same line are applied in the order given; edits past the end of the
    buffer are dropped with a warning.
    """
    patched = list(lines)
    for edit in edits:
        if edit.line > len(patched):
            logger.warning("Dropping edit for line %d beyond end of file (%d lines)", edit.line, len(patched))
            continue
        patched[edit.line - 1] = patched[edit.line - 1] + "\n" + edit.text
    return patched


def run_fault_patterns(context: FileContext, config: Optional[Config] = None) -> AnalysisResult:
    """
    Run every enabled pattern over context, one full walk each, in registry order.

    Each pattern is built fresh and writes to its own scratch FindingSet,
    merged into the run's set only when the pattern completes; a pattern that
    raises is logged and skipped so the others still run. Source edits are
    applied after all patterns finished, to a copy of the line buffer.
    """
    if config is None:
        config = get_default_config()

    variables = collect_variables(context)
    findings = FindingSet()
    edits: list[LineEdit] = []
    failed: list[str] = []

    for pattern_cls in get_enabled_patterns(config):
        name = pattern_cls.category.value
        scratch = FindingSet()
        pattern = pattern_cls(context, scratch, config, variables)
        try:
            pattern.run()
        except Exception:
            logger.exception("Pattern %s failed on %s", name, context.path)
            failed.append(name)
            continue
        logger.debug("Pattern %s produced %d finding(s) on %s", name, len(scratch), context.path)
        findings.extend(scratch)
        edits.extend(pattern.edits)

    logger.info(
        "Analyzed %s: %d finding(s), %d suggested edit(s)", context.path, len(findings), len(edits)
    )
    return AnalysisResult(
        context=context,
        findings=findings,
        variables=variables,
        edits=edits,
        patched_lines=apply_edits(context.lines, edits),
        failed_patterns=failed,
    )


def analyze_file(
    path: Path,
    config: Optional[Config] = None,
    parser: Optional[Parser] = None,
) -> Optional[AnalysisResult]:
    """Read, parse and analyze one C file; None when the file cannot be read."""
    context = create_context(path, parser=parser)
    if context is None:
        return None
    return run_fault_patterns(context, config)
