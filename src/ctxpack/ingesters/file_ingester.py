"""Ingester for a single file."""

from pathlib import Path
from typing import Iterator

from ctxpack.ingesters.reader import read_source
from ctxpack.models import SourceFile


class FileIngester:
    """Ingester for one explicitly named file."""

    source_type = "file"

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing regular file."""
        return source.is_file()

    def ingest(self, source: Path, root: Path, max_size: int) -> Iterator[SourceFile]:
        """Yield the file itself unless it is binary or too large."""
        source_file = read_source(source.resolve(), root, max_size)
        if source_file is not None:
            yield source_file
