"""Document assembly: ordered files in, final chunk texts out."""

import logging
from datetime import datetime
from typing import AbstractSet, Callable, Iterable, Optional, Sequence

from ctxpack.chunkers.fragments import (
    CONTEXT_CLOSE,
    CONTEXT_OPEN,
    render_chunk_close,
    render_chunk_open,
    render_more,
    split_lines,
)
from ctxpack.chunkers.grouping import order_files, render_groups
from ctxpack.chunkers.header import build_header, render_header, utc_now
from ctxpack.chunkers.planner import ChunkPlanner
from ctxpack.errors import PlanningError
from ctxpack.models import (
    ChunkPlan,
    ContextDocument,
    ContextHeader,
    FileMapEntry,
    Fragment,
    RenderedChunk,
    SourceFile,
)
from ctxpack.protocols import TokenCounter

logger = logging.getLogger(__name__)


class DocumentAssembler:
    """Build the chunk sequence for one set of files.

    With chunk_size 0, or when everything fits one chunk, the output is a
    single <shared-context> document with no header. Otherwise chunk 1
    opens <shared-context> and carries the header, every chunk wraps its
    files in <context-chunk id="p/N">, and the last chunk closes the
    document. Position 1 of N belongs to the header.
    """

    def __init__(
        self,
        counter: TokenCounter,
        chunk_size: int = 0,
        escape: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.planner = ChunkPlanner(counter, chunk_size, escape)
        self.chunk_size = self.planner.chunk_size
        self.escape = escape
        self.clock = clock

    def assemble(self, files: Iterable[SourceFile]) -> ContextDocument:
        """Order, plan and render files into a ContextDocument."""
        ordered = order_files(files)

        # Anything that fits one chunk whole is emitted without a header.
        document = self._single([self.planner.whole(file) for file in ordered])
        if document.chunks[0].oversize:
            overhead = self.chunk_overhead(ordered)
            fragments = self.planner.build_fragments(ordered, overhead)
            if len(fragments) > 1:
                logger.debug("Single document exceeds the chunk size; splitting")
                document = self._chunked(fragments, overhead)

        for chunk in document.oversize_chunks:
            logger.warning(
                f"Chunk {chunk.index} needs {chunk.tokens} tokens, "
                f"over the chunk size {self.chunk_size}"
            )
        return document

    def chunk_overhead(self, files: Sequence[SourceFile]) -> int:
        """Upper bound on the wrapper tokens any single chunk spends.

        Every part holds at least one line, so no chunk number can exceed
        the total line count plus the header slot.
        """
        bound = sum(max(len(split_lines(file.content)), 1) for file in files) + 2
        count = self.planner.count
        single = count(CONTEXT_OPEN + CONTEXT_CLOSE)
        body = count(render_chunk_open(bound, bound) + render_chunk_close())
        tail = max(count(render_more(bound)), count(CONTEXT_CLOSE))
        return max(single, body + tail)

    def _single(self, fragments: list[Fragment]) -> ContextDocument:
        text = CONTEXT_OPEN + render_groups(fragments, self.escape) + CONTEXT_CLOSE
        tokens = self.planner.count(text)
        plan = ChunkPlan(fragments=tuple(fragments), tokens=tokens, chunk_size=self.chunk_size)
        chunk = RenderedChunk(index=1, text=text, tokens=tokens, plan=plan)
        return ContextDocument(
            chunks=(chunk,),
            file_map=tuple(self.planner.file_map(fragments)),
            chunk_size=self.chunk_size,
        )

    def _chunked(self, fragments: list[Fragment], overhead: int) -> ContextDocument:
        file_map = self.planner.file_map(fragments)
        generated_at = self.clock()
        breaks: set[int] = set()

        # Each pass either returns or adds a new forced break.
        for _ in range(len(fragments) + 1):
            plans, header = self._place_header(fragments, file_map, generated_at, overhead, breaks)
            chunks = self._render(plans, header)
            crowded = next((chunk for chunk in chunks if self._splittable(chunk)), None)
            if crowded is None:
                return ContextDocument(
                    chunks=tuple(chunks),
                    file_map=header.file_map,
                    chunk_size=self.chunk_size,
                    header=header,
                )
            plan = crowded.plan
            breaks.add(plan.end - 1 if len(plan.fragments) > 1 else plan.start)
            logger.debug(f"Chunk {crowded.index} renders to {crowded.tokens} tokens; re-packing")

        raise PlanningError("chunk splitting did not converge")

    def _place_header(
        self,
        fragments: list[Fragment],
        file_map: list[FileMapEntry],
        generated_at: datetime,
        overhead: int,
        breaks: AbstractSet[int],
    ) -> tuple[list[ChunkPlan], ContextHeader]:
        # The header announces the chunk count and occupies chunk 1, so
        # re-pack until the count it announces is the count it produces.
        plans = self.planner.pack(fragments, chunk_overhead=overhead, breaks=breaks)
        total = len(plans) + 1
        for _ in range(len(fragments) + 2):
            header = build_header(file_map, total, self.chunk_size, generated_at)
            header_tokens = self.planner.count(CONTEXT_OPEN + render_header(header, self.escape))
            plans = self.planner.pack(
                fragments,
                header_tokens=header_tokens,
                chunk_overhead=overhead,
                breaks=breaks,
            )
            if len(plans) + 1 == total:
                return plans, header
            total = len(plans) + 1
        raise PlanningError("header placement did not converge")

    def _render(self, plans: list[ChunkPlan], header: ContextHeader) -> list[RenderedChunk]:
        total = header.total_chunks
        chunks = []
        for index, plan in enumerate(plans, 1):
            position = index + 1
            pieces = []
            if index == 1:
                pieces.append(CONTEXT_OPEN + render_header(header, self.escape))
            if plan.fragments:
                pieces.append(render_chunk_open(position, total))
                pieces.append(render_groups(plan.fragments, self.escape))
                pieces.append(render_chunk_close())
            pieces.append(render_more(total - position) if position < total else CONTEXT_CLOSE)
            text = "".join(pieces)
            chunks.append(
                RenderedChunk(index=index, text=text, tokens=self.planner.count(text), plan=plan)
            )
        return chunks

    @staticmethod
    def _splittable(chunk: RenderedChunk) -> bool:
        """Over budget, and moving a fragment out would help."""
        if not chunk.oversize:
            return False
        fragments = chunk.plan.fragments
        return len(fragments) > 1 or (chunk.plan.has_header and len(fragments) == 1)


def assemble(
    files: Iterable[SourceFile],
    counter: TokenCounter,
    chunk_size: int = 0,
    escape: bool = False,
    clock: Optional[Callable[[], datetime]] = None,
) -> ContextDocument:
    """Convenience wrapper around DocumentAssembler."""
    assembler = DocumentAssembler(counter, chunk_size, escape, clock or utc_now)
    return assembler.assemble(files)
