"""Token-bounded chunk planning.

Files are rendered into fragments (whole files, or line-range parts of files
that cannot fit a chunk on their own) and the fragment stream is packed
greedily, in order, into chunks whose accumulated cost stays within the
budget. A single line is never split: a line that alone exceeds the budget
becomes its own oversize part.
"""

import logging
from pathlib import Path
from typing import AbstractSet, Iterable, Optional, Sequence

from ctxpack.chunkers.fragments import (
    render_folder_close,
    render_folder_open,
    render_fragment,
    split_lines,
)
from ctxpack.config import validate_chunk_size
from ctxpack.models import ChunkPlan, FileMapEntry, Fragment, Part, SourceFile
from ctxpack.protocols import TokenCounter

logger = logging.getLogger(__name__)

# Relabelling can change a part's cost ("9/9" -> "10/10"), so the
# partition is recomputed until the part count settles.
MAX_RELABEL_PASSES = 16


class ChunkPlanner:
    """Split and pack files into token-bounded chunk plans.

    A chunk_size of 0 disables splitting: every file stays whole and
    everything lands in one plan.
    """

    def __init__(self, counter: TokenCounter, chunk_size: int = 0, escape: bool = False):
        self.counter = counter
        self.chunk_size = validate_chunk_size(chunk_size)
        self.escape = escape
        self._folder_costs: dict[Path, int] = {}

    def count(self, text: str) -> int:
        return max(self.counter.count(text), 0)

    def folder_cost(self, folder: Path) -> int:
        """Tokens taken by the folder wrapper around a run of fragments."""
        cost = self._folder_costs.get(folder)
        if cost is None:
            cost = self.count(render_folder_open(folder, self.escape) + render_folder_close())
            self._folder_costs[folder] = cost
        return cost

    def fragment(self, file: SourceFile, part: Part) -> Fragment:
        markup = render_fragment(file, part, self.escape)
        return Fragment(file=file, part=part, markup=markup, tokens=self.count(markup))

    def whole(self, file: SourceFile) -> Fragment:
        """The unsplit fragment for a file."""
        return self.fragment(file, Part.whole(file.content, len(split_lines(file.content))))

    def part_limit(self, file: SourceFile, chunk_overhead: int = 0) -> int:
        """Largest fragment cost that still fits a chunk of its own."""
        return self.chunk_size - chunk_overhead - self.folder_cost(file.folder)

    def fragments_for(self, file: SourceFile, chunk_overhead: int = 0) -> list[Fragment]:
        """Render one file as a single fragment, or as parts if it is too big.

        A file whose whole fragment fits the chunk size stays atomic. Parts
        of a split file are sized to leave room for the chunk and folder
        wrappers.

        Args:
            file: File with its final id already assigned
            chunk_overhead: Tokens every chunk spends on its own wrapper

        Returns:
            Fragments in line order; parts are labelled 1/n..n/n
        """
        whole = self.whole(file)
        if not self.chunk_size or whole.tokens <= self.chunk_size:
            return [whole]

        lines = split_lines(file.content)
        limit = self.part_limit(file, chunk_overhead)
        ranges = self._partition(file, lines, limit)
        total = len(ranges)
        fragments = [
            self.fragment(file, Part(start, end, index, total, "".join(lines[start:end])))
            for index, (start, end) in enumerate(ranges, 1)
        ]
        for fragment in fragments:
            if fragment.tokens > limit:
                logger.warning(
                    f"{file.slash_path} part {fragment.part.label} needs {fragment.tokens} tokens, "
                    f"over the chunk size {self.chunk_size}; emitting oversize part"
                )
        logger.debug(f"Split {file.slash_path} into {total} parts")
        return fragments

    def build_fragments(
        self, files: Iterable[SourceFile], chunk_overhead: int = 0
    ) -> list[Fragment]:
        """Render ordered files into the fragment stream."""
        fragments: list[Fragment] = []
        for file in files:
            fragments.extend(self.fragments_for(file, chunk_overhead))
        return fragments

    def pack(
        self,
        fragments: Sequence[Fragment],
        *,
        header_tokens: Optional[int] = None,
        chunk_overhead: int = 0,
        breaks: AbstractSet[int] = frozenset(),
    ) -> list[ChunkPlan]:
        """Greedily pack fragments, in order, into chunk plans.

        Args:
            fragments: Ordered fragment stream
            header_tokens: Cost of the header sharing chunk 1, or None
                           when there is no header
            chunk_overhead: Tokens every chunk spends on its own wrapper
            breaks: Fragment indices that must start a new chunk

        Returns:
            Chunk plans; when the header leaves no room for the first
            fragment, chunk 1 is a header-only plan
        """
        with_header = header_tokens is not None
        plans: list[ChunkPlan] = []
        current: list[Fragment] = []
        start = 0
        tokens = (header_tokens or 0) + chunk_overhead

        for index, fragment in enumerate(fragments):
            folder = fragment.file.folder
            cost = fragment.tokens
            if not current or current[-1].file.folder != folder:
                cost += self.folder_cost(folder)

            occupied = bool(current) or (with_header and not plans)
            if (
                self.chunk_size
                and occupied
                and (index in breaks or tokens + cost > self.chunk_size)
            ):
                plans.append(self._close(current, tokens, start, with_header and not plans))
                current = []
                start = index
                tokens = chunk_overhead
                cost = fragment.tokens + self.folder_cost(folder)

            current.append(fragment)
            tokens += cost

        if current or (with_header and not plans):
            plans.append(self._close(current, tokens, start, with_header and not plans))
        return plans

    def plan(self, files: Iterable[SourceFile], chunk_overhead: int = 0) -> list[ChunkPlan]:
        """Split and pack ordered files without a header reservation."""
        fragments = self.build_fragments(files, chunk_overhead)
        return self.pack(fragments, chunk_overhead=chunk_overhead)

    def file_map(self, fragments: Iterable[Fragment]) -> list[FileMapEntry]:
        """One entry per file, in id order, with tokens summed over its parts."""
        tokens: dict[int, int] = {}
        entries: dict[int, FileMapEntry] = {}
        for fragment in fragments:
            file = fragment.file
            tokens[file.id] = tokens.get(file.id, 0) + fragment.tokens
            entries[file.id] = FileMapEntry(
                id=file.id,
                path=file.slash_path,
                total_tokens=tokens[file.id],
                part_count=fragment.part.part_count,
            )
        return [entries[file_id] for file_id in sorted(entries)]

    def _close(
        self, fragments: list[Fragment], tokens: int, start: int, has_header: bool
    ) -> ChunkPlan:
        return ChunkPlan(
            fragments=tuple(fragments),
            tokens=tokens,
            chunk_size=self.chunk_size,
            start=start,
            has_header=has_header,
        )

    def _partition(self, file: SourceFile, lines: list[str], limit: int) -> list[tuple[int, int]]:
        # Split first, then re-split with the real part count until stable.
        part_count = 1
        ranges = self._split(file, lines, limit, part_count)
        for _ in range(MAX_RELABEL_PASSES):
            if len(ranges) == part_count:
                break
            part_count = len(ranges)
            ranges = self._split(file, lines, limit, part_count)
        return ranges

    def _split(
        self, file: SourceFile, lines: list[str], limit: int, part_count: int
    ) -> list[tuple[int, int]]:
        ranges: list[tuple[int, int]] = []
        start = 0
        for end in range(1, len(lines) + 1):
            if self._measure(file, lines, start, end, len(ranges) + 1, part_count) <= limit:
                continue
            if end - start > 1:
                # close before the line that overflowed
                ranges.append((start, end - 1))
                start = end - 1
                if self._measure(file, lines, start, end, len(ranges) + 1, part_count) <= limit:
                    continue
            # one line that cannot fit on its own
            ranges.append((start, end))
            start = end
        if start < len(lines) or not ranges:
            ranges.append((start, len(lines)))
        return ranges

    def _measure(
        self, file: SourceFile, lines: list[str], start: int, end: int, index: int, total: int
    ) -> int:
        part = Part(start, end, index, total, "".join(lines[start:end]))
        return self.count(render_fragment(file, part, self.escape))
