"""Input source handlers (ingesters) and file discovery for ctxpack."""

import glob
import logging
from pathlib import Path
from typing import Iterable, Optional

from ctxpack.config import DEFAULT_MAX_FILE_SIZE
from ctxpack.errors import SourceNotFoundError
from ctxpack.ingesters.file_ingester import FileIngester
from ctxpack.ingesters.folder_ingester import FolderIngester
from ctxpack.ingesters.reader import read_source
from ctxpack.models import SourceFile
from ctxpack.protocols import Ingester
from ctxpack.utils.paths import matches_any, normalize_pattern

logger = logging.getLogger(__name__)

# Registry of available ingesters
_INGESTERS: list[Ingester] = [
    FolderIngester(),
    FileIngester(),
]


def get_ingester(source: Path | str) -> Optional[Ingester]:
    """Find an ingester that can handle the given source.

    Args:
        source: Path to the input source (folder or file)

    Returns:
        An Ingester instance that can handle the source, or None
    """
    source_path = Path(source)
    for ingester in _INGESTERS:
        if ingester.can_handle(source_path):
            return ingester
    return None


def register_ingester(ingester: Ingester) -> None:
    """Register a custom ingester (for plugins/extensions).

    Args:
        ingester: An object implementing the Ingester protocol
    """
    _INGESTERS.append(ingester)


def expand_paths(patterns: Iterable[str], root: Optional[Path] = None) -> list[Path]:
    """Expand glob patterns; a pattern that matches nothing is kept literally."""
    base = root or Path.cwd()
    expanded: list[Path] = []
    for raw in patterns:
        pattern = normalize_pattern(raw)
        full_pattern = pattern if Path(pattern).is_absolute() else str(base / pattern)
        matches = sorted(glob.glob(full_pattern, recursive=True))
        if matches:
            expanded.extend(Path(match) for match in matches)
        else:
            expanded.append(Path(pattern) if Path(pattern).is_absolute() else base / pattern)
    return expanded


def gather_sources(
    patterns: Iterable[str],
    exclude: Iterable[str] = (),
    max_size: int = DEFAULT_MAX_FILE_SIZE,
    root: Optional[Path] = None,
) -> list[SourceFile]:
    """Discover and read every text file named by the given paths or globs.

    Args:
        patterns: Files, folders or glob patterns
        exclude: Glob patterns; matching files are dropped
        max_size: Largest file size in bytes to read
        root: Directory paths are reported relative to (defaults to cwd)

    Returns:
        De-duplicated files in discovery order (the planner re-orders them)

    Raises:
        SourceNotFoundError: If a path does not exist
    """
    root = (root or Path.cwd()).resolve()
    exclude = list(exclude)
    seen: set[Path] = set()
    files: list[SourceFile] = []

    for source in expand_paths(patterns, root):
        ingester = get_ingester(source)
        if ingester is None:
            raise SourceNotFoundError(str(source))
        logger.debug(f"Ingesting {source} ({ingester.source_type})")

        for source_file in ingester.ingest(source, root, max_size):
            absolute = (root / source_file.path).resolve()
            if absolute in seen:
                continue
            seen.add(absolute)
            if exclude and matches_any(absolute, exclude, root):
                logger.debug(f"Excluded {source_file.slash_path}")
                continue
            files.append(source_file)

    return files


__all__ = [
    "get_ingester",
    "register_ingester",
    "expand_paths",
    "gather_sources",
    "read_source",
    "FileIngester",
    "FolderIngester",
]
