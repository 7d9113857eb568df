"""Core data models for files, parts, fragments and chunks."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class SourceFile:
    """A text file handed to the planner.

    ``id`` is -1 until the folder grouper stamps the final ordering.
    """

    folder: Path
    path: Path
    content: str
    id: int = -1

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def slash_path(self) -> str:
        return self.path.as_posix()

    @property
    def slash_folder(self) -> str:
        # Path("") renders as "."
        return self.folder.as_posix()


@dataclass(frozen=True)
class Part:
    """A contiguous line range ``[start_line, end_line)`` of one file."""

    start_line: int
    end_line: int
    part_index: int = 1
    part_count: int = 1
    content: str = ""

    @classmethod
    def whole(cls, content: str, line_count: int) -> "Part":
        return cls(start_line=0, end_line=line_count, content=content)

    @property
    def is_split(self) -> bool:
        return self.part_count > 1

    @property
    def label(self) -> str:
        return f"{self.part_index}/{self.part_count}"


@dataclass(frozen=True)
class Fragment:
    """One renderable block: a whole file or one part of it.

    ``tokens`` is the oracle's count for ``markup``, the exact text emitted.
    """

    file: SourceFile
    part: Part
    markup: str
    tokens: int


@dataclass(frozen=True)
class ChunkPlan:
    """Which fragments go into one chunk, and what they are expected to cost."""

    fragments: tuple[Fragment, ...]
    tokens: int
    chunk_size: int = 0
    start: int = 0  # global index of the first fragment
    has_header: bool = False

    @property
    def oversize(self) -> bool:
        return self.chunk_size > 0 and self.tokens > self.chunk_size

    @property
    def end(self) -> int:
        return self.start + len(self.fragments)


@dataclass(frozen=True)
class FileMapEntry:
    """One file-map line of the context header."""

    id: int
    path: str
    total_tokens: int
    part_count: int


@dataclass(frozen=True)
class ContextHeader:
    """Manifest prepended to the first chunk of a multi-chunk document."""

    version: int
    total_chunks: int
    chunk_size: int
    generated_at: datetime
    file_map: tuple[FileMapEntry, ...]
    instructions: str


@dataclass(frozen=True)
class RenderedChunk:
    """Final text of one emitted chunk."""

    index: int  # 1-based over emitted chunks
    text: str
    tokens: int
    plan: ChunkPlan

    @property
    def oversize(self) -> bool:
        return self.plan.chunk_size > 0 and self.tokens > self.plan.chunk_size


@dataclass(frozen=True)
class ContextDocument:
    """The ordered chunk sequence produced for one invocation."""

    chunks: tuple[RenderedChunk, ...]
    file_map: tuple[FileMapEntry, ...]
    chunk_size: int = 0
    header: Optional[ContextHeader] = None

    @property
    def total_chunks(self) -> int:
        """Chunk count as announced to consumers; the header takes a slot."""
        if self.header is None:
            return len(self.chunks)
        return self.header.total_chunks

    @property
    def texts(self) -> list[str]:
        return [chunk.text for chunk in self.chunks]

    @property
    def total_tokens(self) -> int:
        return sum(chunk.tokens for chunk in self.chunks)

    @property
    def oversize_chunks(self) -> list[RenderedChunk]:
        return [chunk for chunk in self.chunks if chunk.oversize]
