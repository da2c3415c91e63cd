from __future__ import annotations

"""
Analyzer configuration: which fault patterns are enabled and how they are tuned.

PATTERN_REGISTRY is the single place that maps pattern names (as used by the
CLI and in findings) to detector classes. Its order is the run order, and so
the report order across patterns.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Type

from faultlock.patterns.base import FaultPattern
from faultlock.patterns.branch import Branch
from faultlock.patterns.bypass import Bypass
from faultlock.patterns.constant_coding import ConstantCoding
from faultlock.patterns.default_fail import DefaultFail
from faultlock.patterns.detect import Detect
from faultlock.patterns.double_check import DoubleCheck

PATTERN_REGISTRY: dict[str, Type[FaultPattern]] = {
    "branch": Branch,
    "bypass": Bypass,
    "constant_coding": ConstantCoding,
    "default_fail": DefaultFail,
    "detect": Detect,
    "double_check": DoubleCheck,
}

DEFAULT_BRANCH_SENSITIVITY = 3
DEFAULT_CONSTANT_SENSITIVITY = 3
DEFAULT_GUARD_FUNCTION = "faultDetect"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")


@dataclass
class Config:
    """
    Analyzer configuration.

    patterns names the enabled detectors; sensitivities are Hamming-weight
    thresholds (a constant is trivial when its weight is below them);
    guard_function is the call placed in suggested double-check guards.
    """

    patterns: Sequence[str] = field(default_factory=lambda: tuple(PATTERN_REGISTRY))
    branch_sensitivity: int = DEFAULT_BRANCH_SENSITIVITY
    constant_sensitivity: int = DEFAULT_CONSTANT_SENSITIVITY
    guard_function: str = DEFAULT_GUARD_FUNCTION

    def __post_init__(self) -> None:
        unknown = [name for name in self.patterns if name not in PATTERN_REGISTRY]
        if unknown:
            raise ValueError(
                f"Unknown pattern(s): {', '.join(unknown)}. "
                f"Available: {', '.join(PATTERN_REGISTRY)}"
            )
        for attr in ("branch_sensitivity", "constant_sensitivity"):
            if getattr(self, attr) < 1:
                raise ValueError(f"{attr} must be at least 1, got {getattr(self, attr)}")
        if not _IDENTIFIER_RE.match(self.guard_function):
            raise ValueError(f"guard_function must be a C identifier, got {self.guard_function!r}")


def get_default_config() -> Config:
    """Return the default configuration: every pattern enabled, default thresholds."""
    return Config()


def config_from_names(names: Iterable[str], **overrides) -> Config:
    """Build a Config enabling only the given pattern names (duplicates ignored)."""
    unique: List[str] = []
    for name in names:
        if name not in unique:
            unique.append(name)
    return Config(patterns=tuple(unique), **overrides)


def get_enabled_patterns(config: Config | None = None) -> List[Type[FaultPattern]]:
    """Return the enabled detector classes in registry (run) order."""
    if config is None:
        config = get_default_config()
    enabled = set(config.patterns)
    return [cls for name, cls in PATTERN_REGISTRY.items() if name in enabled]
