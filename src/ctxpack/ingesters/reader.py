"""Reading one file into a SourceFile."""

import logging
from pathlib import Path
from typing import Optional

from ctxpack.models import SourceFile
from ctxpack.utils.binary import detect_binary
from ctxpack.utils.paths import display_path

logger = logging.getLogger(__name__)


def read_source(path: Path, root: Path, max_size: int) -> Optional[SourceFile]:
    """Read a text file, or return None if it should be skipped.

    Files over max_size bytes and binary files are skipped with a warning.
    Read errors propagate to the caller.
    """
    size = path.stat().st_size
    if size > max_size:
        logger.warning(f"{path} exceeds {max_size} bytes. Skipping.")
        return None

    raw_content = path.read_bytes()
    if detect_binary(path, raw_content):
        logger.warning(f"{path} appears to be a binary file. Skipping.")
        return None

    shown = display_path(path, root)
    return SourceFile(
        folder=shown.parent,
        path=shown,
        content=raw_content.decode("utf-8", errors="replace"),
    )
