"""Multi-step mode: send the file map first, then files on request."""

import logging
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Callable, Iterable, Optional, TextIO

from ctxpack.chunkers.fragments import CONTEXT_OPEN
from ctxpack.chunkers.grouping import order_files
from ctxpack.chunkers.header import build_header, multi_step_instructions, render_header, utc_now
from ctxpack.chunkers.planner import ChunkPlanner
from ctxpack.models import Fragment, SourceFile
from ctxpack.protocols import TokenCounter
from ctxpack.utils.clipboard import copy_to_clipboard
from ctxpack.utils.paths import normalize_pattern

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"q", "quit", "exit"}


class MultiStepSession:
    """Serve a header-only snippet, then individual files by id or glob."""

    def __init__(
        self,
        files: Iterable[SourceFile],
        counter: TokenCounter,
        chunk_size: int = 0,
        escape: bool = False,
        clock: Callable[[], datetime] = utc_now,
        copy: Optional[Callable[[str], bool]] = None,
    ):
        # Files stay whole here: each request sends complete files.
        planner = ChunkPlanner(counter, 0, escape)
        self.files = order_files(files)
        self.fragments: list[Fragment] = planner.build_fragments(self.files)
        self.header = build_header(
            planner.file_map(self.fragments),
            total_chunks=1,
            chunk_size=chunk_size,
            generated_at=clock(),
            instructions=multi_step_instructions(),
        )
        self.escape = escape
        self.copy = copy

    def header_snippet(self) -> str:
        """Opening snippet: <shared-context> plus the header, left open."""
        return CONTEXT_OPEN + render_header(self.header, self.escape)

    def select(self, command: str) -> list[int]:
        """Resolve a request to file ids: a numeric id, or a path glob."""
        command = command.strip()
        if command.isdigit():
            file_id = int(command)
            return [file_id] if file_id < len(self.files) else []
        pattern = normalize_pattern(command)
        return [file.id for file in self.files if fnmatchcase(file.slash_path, pattern)]

    def request(self, command: str) -> str:
        """Render the requested files, or return "" if nothing matched."""
        selected = self.select(command)
        if not selected:
            logger.warning(f"No files match request: {command.strip()}")
            return ""
        return "".join(self.fragments[file_id].markup for file_id in selected)

    def run(self, stdin: TextIO, stdout: TextIO) -> None:
        """REPL: write the header, then answer requests until 'q' or EOF."""
        self._deliver(self.header_snippet(), stdout)
        logger.info("Commands: enter file ids, file paths, or glob patterns; 'q' to quit.")

        for line in stdin:
            command = line.strip()
            if not command:
                continue
            if command.lower() in QUIT_COMMANDS:
                break
            output = self.request(command)
            if output:
                self._deliver(output, stdout)

    def _deliver(self, text: str, stdout: TextIO) -> None:
        stdout.write(text)
        stdout.flush()
        if self.copy is not None:
            self.copy(text)


def default_copy(text: str) -> bool:
    return copy_to_clipboard(text, fail_hard=False)
