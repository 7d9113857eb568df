"""
Tests for the Chunk Deck selection and cursor state.
"""

from conftest import make_file
from ctxpack.chunkers import assemble
from ctxpack.deck import DeckState


def files():
    return [make_file(f"src/f{i}.txt", "#" * 900) for i in range(3)]


class TestDeckState:
    """Tests for DeckState."""

    def test_starts_with_everything_selected(self):
        """Should preselect every file."""
        state = DeckState.all_selected(files())

        assert state.selected == {0, 1, 2}
        assert len(state.selected_files) == 3

    def test_toggle_and_select(self):
        """Should track toggled and explicit selections."""
        state = DeckState.all_selected(files())

        state.toggle(1)
        assert [f.slash_path for f in state.selected_files] == ["src/f0.txt", "src/f2.txt"]
        state.toggle(1)
        assert state.selected == {0, 1, 2}

        state.select([2, 7])
        assert state.selected == {2}

    def test_no_chunks_before_build(self):
        """Should have nothing to copy before a build."""
        state = DeckState.all_selected(files())

        assert state.current() is None
        assert state.next() is None
        assert state.position == "--"

    def test_cursor_wraps(self, hash_counter, fixed_clock):
        """Should cycle forward and backward through the chunks."""
        state = DeckState.all_selected(files())
        document = assemble(state.selected_files, hash_counter, chunk_size=1000, clock=fixed_clock)

        state.load(document)

        assert state.chunk_count == 3
        assert state.current() == document.texts[0]
        assert state.next() == document.texts[1]
        assert state.next() == document.texts[2]
        assert state.position == "3/3"
        assert state.next() == document.texts[0]
        assert state.prev() == document.texts[2]

    def test_load_resets_cursor(self, hash_counter):
        """Should start at the first chunk after every build."""
        state = DeckState.all_selected(files())
        state.load(assemble(state.selected_files, hash_counter, chunk_size=1000))
        state.next()

        state.load(assemble(state.selected_files[:1], hash_counter, chunk_size=1000))

        assert state.cursor == 0
        assert state.chunk_count == 1
