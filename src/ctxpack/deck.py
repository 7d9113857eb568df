"""Chunk Deck - a TUI for picking files and cycling through chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.message import Message
from textual.widgets import DataTable, Footer, Header, Label, Log, Rule, SelectionList, Static

from ctxpack.chunkers import DocumentAssembler
from ctxpack.models import ContextDocument, SourceFile
from ctxpack.protocols import TokenCounter


@dataclass
class DeckState:
    """Selection and chunk cursor, kept apart from the widgets."""

    files: list[SourceFile]
    selected: set[int] = field(default_factory=set)
    document: ContextDocument | None = None
    cursor: int = 0

    @classmethod
    def all_selected(cls, files: Sequence[SourceFile]) -> "DeckState":
        return cls(files=list(files), selected=set(range(len(files))))

    def toggle(self, index: int) -> None:
        if index in self.selected:
            self.selected.discard(index)
        else:
            self.selected.add(index)

    def select(self, indices: Sequence[int]) -> None:
        self.selected = {index for index in indices if 0 <= index < len(self.files)}

    @property
    def selected_files(self) -> list[SourceFile]:
        return [file for index, file in enumerate(self.files) if index in self.selected]

    @property
    def chunk_count(self) -> int:
        return len(self.document.chunks) if self.document else 0

    def load(self, document: ContextDocument) -> None:
        self.document = document
        self.cursor = 0

    def current(self) -> str | None:
        if not self.chunk_count:
            return None
        return self.document.chunks[self.cursor].text

    def next(self) -> str | None:
        """Advance the cursor, wrapping from the last chunk to the first."""
        if not self.chunk_count:
            return None
        self.cursor = (self.cursor + 1) % self.chunk_count
        return self.current()

    def prev(self) -> str | None:
        if not self.chunk_count:
            return None
        self.cursor = (self.cursor - 1) % self.chunk_count
        return self.current()

    @property
    def position(self) -> str:
        if not self.chunk_count:
            return "--"
        return f"{self.cursor + 1}/{self.chunk_count}"


class DeckSummary(Static):
    """Totals for the current selection and build."""

    def update_display(self, state: DeckState) -> None:
        document = state.document
        tokens = f"{document.total_tokens:,}" if document else "--"
        self.update(
            f"[b]FILES[/b]   [cyan]{len(state.selected)}[/] of {len(state.files)}\n"
            f"[b]CHUNKS[/b]  [magenta]{state.chunk_count}[/]\n"
            f"[b]TOKENS[/b]  [yellow]{tokens}[/]\n"
            f"[b]CURSOR[/b]  [green]{state.position}[/]"
        )


class ChunkTable(DataTable):
    """One row per emitted chunk."""

    def on_mount(self) -> None:
        self.add_columns("Chunk", "Files", "Tokens", "")
        self.cursor_type = "row"

    def show(self, document: ContextDocument) -> None:
        self.clear()
        for chunk in document.chunks:
            paths = {fragment.file.slash_path for fragment in chunk.plan.fragments}
            flag = "[red]over[/]" if chunk.oversize else ""
            self.add_row(str(chunk.index), str(len(paths)), f"{chunk.tokens:,}", flag)


class ChunkDeck(App):
    """Pick files, build chunks in the background, copy them one by one."""

    class ChunksBuilt(Message):
        def __init__(self, document: ContextDocument) -> None:
            self.document = document
            super().__init__()

    class LogMessage(Message):
        def __init__(self, message: str) -> None:
            self.message = message
            super().__init__()

    CSS = """
    #main-container {
        layout: horizontal;
        height: 100%;
    }

    #left-panel {
        width: 45%;
        border-right: solid $primary-darken-2;
        padding: 1;
    }

    #right-panel {
        width: 1fr;
        padding: 1;
    }

    SelectionList {
        height: 1fr;
        border: round $primary-darken-1;
    }

    DeckSummary {
        height: auto;
        padding: 1;
        border: round $primary;
        margin-bottom: 1;
    }

    ChunkTable {
        height: 1fr;
        border: round $primary-darken-1;
    }

    #log-panel {
        height: 10;
        border: round $primary-darken-2;
    }

    .section-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        Binding("b", "build", "Build", show=True),
        Binding("c", "copy_current", "Copy", show=True),
        Binding("n", "copy_next", "Next", show=True),
        Binding("p", "copy_prev", "Prev", show=True),
        Binding("q", "quit", "Quit", show=True),
    ]

    TITLE = "ctxpack Chunk Deck"

    def __init__(
        self,
        files: Sequence[SourceFile],
        counter: TokenCounter,
        chunk_size: int = 0,
        escape: bool = False,
        copy: Callable[[str], bool] | None = None,
    ) -> None:
        super().__init__()
        self.state = DeckState.all_selected(files)
        self.assembler = DocumentAssembler(counter, chunk_size, escape)
        self.copy_text = copy

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="main-container"):
            with Vertical(id="left-panel"):
                yield Label("FILES", classes="section-title")
                yield SelectionList[int](
                    *[
                        (file.slash_path, index, True)
                        for index, file in enumerate(self.state.files)
                    ],
                    id="file-list",
                )
            with Vertical(id="right-panel"):
                yield DeckSummary()
                yield Label("CHUNKS", classes="section-title")
                yield ChunkTable(id="chunk-table")
                yield Rule()
                yield Log(id="log-panel", auto_scroll=True)
        yield Footer()

    def on_mount(self) -> None:
        self._log(f"Loaded {len(self.state.files)} files")
        self.action_build()

    def _log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.query_one("#log-panel", Log).write_line(f"[{timestamp}] {message}")

    def _refresh_summary(self) -> None:
        self.query_one(DeckSummary).update_display(self.state)

    def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        self.state.select(event.selection_list.selected)
        self._refresh_summary()

    def on_chunk_deck_chunks_built(self, event: ChunksBuilt) -> None:
        self.state.load(event.document)
        self.query_one("#chunk-table", ChunkTable).show(event.document)
        self._refresh_summary()
        self._log(
            f"Built {self.state.chunk_count} chunks, "
            f"{event.document.total_tokens:,} tokens"
        )

    def on_chunk_deck_log_message(self, event: LogMessage) -> None:
        self._log(event.message)

    def action_build(self) -> None:
        files = self.state.selected_files
        if not files:
            self._log("No files selected")
            return
        self._log(f"Building chunks for {len(files)} files...")
        self.build_chunks(files)

    @work(exclusive=True, thread=True)
    def build_chunks(self, files: list[SourceFile]) -> None:
        """Plan and render chunks in a background thread."""
        try:
            document = self.assembler.assemble(files)
        except Exception as e:
            self.post_message(self.LogMessage(f"ERROR: {e}"))
            return
        for chunk in document.oversize_chunks:
            self.post_message(
                self.LogMessage(f"Chunk {chunk.index} is over budget ({chunk.tokens} tokens)")
            )
        self.post_message(self.ChunksBuilt(document))

    def _deliver(self, text: str | None) -> None:
        if text is None:
            self._log("Nothing built yet")
            return
        table = self.query_one("#chunk-table", ChunkTable)
        table.move_cursor(row=self.state.cursor)
        self._refresh_summary()
        if self.copy_text is not None and self.copy_text(text):
            self._log(f"Copied chunk {self.state.position}")
        else:
            self._log(f"Chunk {self.state.position} not copied")

    def action_copy_current(self) -> None:
        self._deliver(self.state.current())

    def action_copy_next(self) -> None:
        self._deliver(self.state.next())

    def action_copy_prev(self) -> None:
        self._deliver(self.state.prev())


def run_deck(
    files: Sequence[SourceFile],
    counter: TokenCounter,
    chunk_size: int = 0,
    escape: bool = False,
    copy: Callable[[str], bool] | None = None,
) -> None:
    """Run the Chunk Deck TUI."""
    app = ChunkDeck(files, counter, chunk_size, escape, copy)
    app.run()
