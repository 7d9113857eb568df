"""Ingester for local folders."""

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator

from ctxpack.ingesters.reader import read_source
from ctxpack.models import SourceFile

# Common build artifacts and environments
SKIP_PATTERNS = (
    "__pycache__",
    "node_modules",
    "venv",
    "env",
    "dist",
    "build",
    "target",
    "*.egg-info",
)


def read_gitignore_dirs(folder: Path) -> set[str]:
    """Top-level directories a folder's .gitignore anchors with a leading '/'."""
    gitignore = folder / ".gitignore"
    try:
        text = gitignore.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return set()

    ignored = set()
    for line in text.splitlines():
        pattern = line.strip()
        if not pattern or pattern.startswith("#"):
            continue
        if pattern.startswith("/"):
            ignored.add(pattern.strip("/"))
    return ignored


class FolderIngester:
    """Ingester for local filesystem folders."""

    source_type = "folder"

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing directory."""
        return source.is_dir()

    def ingest(self, source: Path, root: Path, max_size: int) -> Iterator[SourceFile]:
        """Yield text files from a folder recursively.

        Args:
            source: Path to the folder
            root: Directory reported paths are made relative to
            max_size: Largest file size in bytes to read

        Yields:
            SourceFile objects for each text file in the folder
        """
        source = source.resolve()
        ignored_dirs = read_gitignore_dirs(source)

        for current, dirnames, filenames in os.walk(source):
            current_path = Path(current)
            rel_dir = current_path.relative_to(source)
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not self._should_skip(name, is_dir=True)
                and not (rel_dir == Path(".") and name in ignored_dirs)
            )
            for filename in sorted(filenames):
                if self._should_skip(filename, is_dir=False):
                    continue
                source_file = read_source(current_path / filename, root, max_size)
                if source_file is not None:
                    yield source_file

    def _should_skip(self, name: str, is_dir: bool) -> bool:
        """Check if a directory or file name should be skipped.

        Skips hidden entries (including version control) and, for
        directories, common build artifacts.
        """
        if name.startswith("."):
            return True
        return is_dir and any(fnmatchcase(name, pattern) for pattern in SKIP_PATTERNS)
