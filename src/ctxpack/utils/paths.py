"""Path display and matching helpers."""

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable


def display_path(path: Path, root: Path) -> Path:
    """Path relative to root when it lives under root, else unchanged."""
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def normalize_pattern(pattern: str) -> str:
    """Glob patterns always use '/' separators."""
    return pattern.replace("\\", "/")


def matches_any(path: Path, patterns: Iterable[str], root: Path) -> bool:
    """Check a path against glob patterns, both relative to root and absolute."""
    candidates = {display_path(path, root).as_posix(), path.as_posix()}
    return any(
        fnmatchcase(candidate, normalize_pattern(pattern))
        for pattern in patterns
        for candidate in candidates
    )
