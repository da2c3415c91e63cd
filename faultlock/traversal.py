"""
File system traversal: collect the C sources a directory analysis should cover.

Build output, vendored code, VCS metadata and tool caches are skipped by
default; firmware trees tend to carry copies of vendor HALs and generated code
that would drown the report.

Typical usage:
    from pathlib import Path
    from faultlock.traversal import find_source_files

    sources = find_source_files(Path("./firmware"), include_headers=True)
"""

import logging
from pathlib import Path
from typing import Optional, Set

logger = logging.getLogger(__name__)

C_SUFFIXES = frozenset({".c"})
HEADER_SUFFIXES = frozenset({".h"})

DEFAULT_IGNORE_DIRS: Set[str] = {
    # Build output
    "build",
    "Build",
    "dist",
    "out",
    "bin",
    "obj",
    "Debug",
    "Release",
    # Tests and fixtures
    "tests",
    "test",
    # Third-party code
    "vendor",
    "third_party",
    "external",
    "deps",
    "Drivers",
    # Version control and tooling
    ".git",
    ".svn",
    ".hg",
    ".vscode",
    ".idea",
    "__pycache__",
    ".cache",
}


def is_source_file(path: Path, include_headers: bool = False) -> bool:
    """
    True for .c files, and for .h files when include_headers is set.

    Suffix comparison is case-insensitive (``MAIN.C`` counts).
    """
    suffix = path.suffix.lower()
    if suffix in C_SUFFIXES:
        return True
    return include_headers and suffix in HEADER_SUFFIXES


def find_source_files(
    root: Path,
    include_headers: bool = False,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
) -> list[Path]:
    """
    Recursively collect C sources under root, sorted for deterministic output.

    Raises:
        FileNotFoundError: root does not exist.
        NotADirectoryError: root is not a directory.

    Unreadable subdirectories are logged and skipped.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()
    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")
    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    collected: list[Path] = []
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            entries = list(current.iterdir())
        except OSError as e:
            logger.warning("Cannot list directory %s: %s", current, e)
            continue
        for entry in entries:
            if entry.is_symlink() and not follow_symlinks:
                logger.debug("Skipping symlink: %s", entry)
                continue
            if entry.is_dir():
                if entry.name in ignore_dirs:
                    logger.debug("Ignoring directory: %s", entry)
                    continue
                pending.append(entry)
            elif entry.is_file() and is_source_file(entry, include_headers=include_headers):
                collected.append(entry)

    collected.sort()
    logger.info("Found %d source file(s) under %s", len(collected), root)
    return collected
