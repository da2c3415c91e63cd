# Pydantic data models for fault-pattern results: ResultFinding, FindingSet, LineEdit.

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, overload

from pydantic import BaseModel, Field, model_validator


class Category(str, Enum):
    """Wire-visible tag naming the pattern that produced a finding."""

    BRANCH = "branch"
    BYPASS = "bypass"
    CONSTANT_CODING = "constant_coding"
    DEFAULT_FAIL = "default_fail"
    DETECT = "detect"
    DOUBLE_CHECK = "double_check"


class FindingScope(str, Enum):
    SINGLE_LINE = "single_line"
    SPANNING = "spanning"


class ResultFinding(BaseModel):
    """One reported issue, either on a single line or spanning start_line..end_line."""

    category: Category
    message: str
    start_line: int = Field(..., ge=1, description="1-based line number")
    end_line: Optional[int] = Field(None, ge=1)
    path: Optional[Path] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @model_validator(mode="after")
    def _check_span(self) -> "ResultFinding":
        if self.end_line is not None and self.end_line < self.start_line:
            raise ValueError(
                f"end_line {self.end_line} precedes start_line {self.start_line}"
            )
        return self

    @property
    def scope(self) -> FindingScope:
        if self.end_line is None:
            return FindingScope.SINGLE_LINE
        return FindingScope.SPANNING

    @classmethod
    def single_line(
        cls, category: Category, message: str, line: int, path: Optional[Path] = None
    ) -> "ResultFinding":
        return cls(category=category, message=message, start_line=line, path=path)

    @classmethod
    def spanning(
        cls,
        category: Category,
        message: str,
        start_line: int,
        end_line: int,
        path: Optional[Path] = None,
    ) -> "ResultFinding":
        return cls(
            category=category,
            message=message,
            start_line=start_line,
            end_line=end_line,
            path=path,
        )


class LineEdit(BaseModel):
    """Deferred source edit: append a newline plus text to the given 1-based line."""

    line: int = Field(..., ge=1)
    text: str

    model_config = {"frozen": True}


class FindingSet:
    """
    Ordered, append-only collection of findings.

    Iteration order is insertion order, which is the report order.
    """

    def __init__(self, findings: Iterable[ResultFinding] = ()) -> None:
        self._findings: list[ResultFinding] = list(findings)

    def append(self, finding: ResultFinding) -> None:
        self._findings.append(finding)

    def extend(self, findings: Iterable[ResultFinding]) -> None:
        self._findings.extend(findings)

    def by_category(self, category: Category | str) -> list[ResultFinding]:
        return [f for f in self._findings if f.category == category]

    def to_list(self) -> list[ResultFinding]:
        return list(self._findings)

    def __iter__(self) -> Iterator[ResultFinding]:
        return iter(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    @overload
    def __getitem__(self, index: int) -> ResultFinding: ...

    @overload
    def __getitem__(self, index: slice) -> list[ResultFinding]: ...

    def __getitem__(self, index):
        return self._findings[index]

    def __repr__(self) -> str:
        return f"FindingSet({len(self._findings)} findings)"
