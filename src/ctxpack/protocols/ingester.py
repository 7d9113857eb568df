"""Protocol for input source handlers."""

from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from ctxpack.models import SourceFile


@runtime_checkable
class Ingester(Protocol):
    """Protocol for input source handlers.

    Implementations turn one user-supplied path (a folder, a single file)
    into text files. Uses structural subtyping - no inheritance required.
    """

    @property
    def source_type(self) -> str:
        """Return identifier for this source type (e.g., 'folder', 'file')."""
        ...

    def can_handle(self, source: Path) -> bool:
        """Check if this ingester can process the given source."""
        ...

    def ingest(self, source: Path, root: Path, max_size: int) -> Iterator[SourceFile]:
        """Yield text files from the source.

        Paths are reported relative to root when the file lives under it.
        Binary and oversized files are skipped, not yielded.
        """
        ...
