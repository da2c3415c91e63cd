# FaultPattern base class: the contract every detector implements.
# A pattern is a TreeListener that appends findings to a FindingSet while the
# tree is walked, then gets one finalize() call for end-of-pass findings.

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from tree_sitter import Node as TSNode

from faultlock.collector import VariableRecord
from faultlock.context import FileContext
from faultlock.findings.models import Category, FindingSet, LineEdit, ResultFinding
from faultlock.walker import TreeListener, walk

if TYPE_CHECKING:
    from faultlock.config import Config

IF_CONDITION = "if_condition"
FOR_CONDITION = "for_condition"
LOOP_CONDITION = "loop_condition"
CONDITION_FRAMES = (IF_CONDITION, FOR_CONDITION, LOOP_CONDITION)

_CONDITION_PARENTS = {
    "if_statement": IF_CONDITION,
    "for_statement": FOR_CONDITION,
    "while_statement": LOOP_CONDITION,
    "do_statement": LOOP_CONDITION,
}


def condition_frame(node: TSNode, field: Optional[str]) -> Optional[str]:
    """Frame for the condition clause of if/for/while/do, None for anything else."""
    if field != "condition" or node.parent is None:
        return None
    return _CONDITION_PARENTS.get(node.parent.type)


def is_if_condition(node: TSNode, field: Optional[str]) -> bool:
    return condition_frame(node, field) == IF_CONDITION


def unwrap_parens(node: TSNode) -> TSNode:
    """Strip parenthesized_expression wrappers, returning the inner expression."""
    while node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


class FaultPattern(TreeListener):
    """
    Base class for all fault-injection pattern detectors.

    Subclasses define:
    - category: Category, the tag attached to every finding they produce
    - name: str, human-readable pattern name
    - description: str, one-line summary shown by ``faultlock patterns``
    - enter_*/exit_* callbacks and, optionally, finalize()

    Instances hold per-run scratch state and must be built fresh for each run.
    """

    category: Category
    name: str
    description: str = ""

    def __init__(
        self,
        context: FileContext,
        output: FindingSet,
        config: "Config",
        variables: Sequence[VariableRecord] = (),
    ) -> None:
        super().__init__()
        self.context = context
        self.output = output
        self.config = config
        self.variables = variables
        self.edits: list[LineEdit] = []

    def frame_for(self, node: TSNode, field: Optional[str]) -> Optional[str]:
        return condition_frame(node, field)

    def in_if_condition(self) -> bool:
        """True when the nearest enclosing condition clause belongs to an ``if``."""
        return self.frames.nearest(CONDITION_FRAMES) == IF_CONDITION

    def run(self) -> FindingSet:
        """Walk the whole tree once, finalize, and return the output set."""
        walk(self, self.context.root_node)
        self.finalize()
        return self.output

    def finalize(self) -> None:
        """Hook for findings that can only be decided after the full walk."""
        return None

    def report(self, message: str, line: int) -> ResultFinding:
        finding = ResultFinding.single_line(self.category, message, line, path=self.context.path)
        self.output.append(finding)
        return finding

    def report_span(self, message: str, start_line: int, end_line: int) -> ResultFinding:
        finding = ResultFinding.spanning(
            self.category, message, start_line, end_line, path=self.context.path
        )
        self.output.append(finding)
        return finding
