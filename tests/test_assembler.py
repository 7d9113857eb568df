"""
Tests for document assembly: headers, chunk wrappers and reassembly.
"""

import random

import pytest

from conftest import FIXED_TIME, CharCounter, HashCounter, make_file
from ctxpack.chunkers import DocumentAssembler, assemble, reassemble
from ctxpack.chunkers.grouping import order_files
from ctxpack.chunkers.header import render_header


class SquaredCounter:
    """Charges more per character as texts grow, so costs do not add up."""

    model_name = "squared"

    def count(self, text: str) -> int:
        return len(text) + (len(text) // 200) ** 2


class FailingCounter:
    """Fails on any text containing the marker."""

    model_name = "failing"

    def __init__(self, marker: str):
        self.marker = marker

    def count(self, text: str) -> int:
        if self.marker in text:
            raise RuntimeError(f"cannot count text containing {self.marker!r}")
        return len(text)


def three_files():
    return [
        make_file("src/a.py", "#" * 1000),
        make_file("src/b.py", "#" * 1000),
        make_file("src/c.py", "#" * 1500),
    ]


class TestSingleDocument:
    """Tests for output that fits one chunk."""

    def test_exact_wire_format(self, hash_counter):
        """Should render one folder-wrapped file inside <shared-context>."""
        document = assemble([make_file("src/a.py", "print(1)\n")], hash_counter)

        assert document.texts == [
            "<shared-context>\n"
            '  <folder path="src">\n'
            '    <file-contents id="0" path="src/a.py" name="a.py" folder="src">\n'
            "print(1)\n"
            "\n"
            "    </file-contents>\n"
            "  </folder>\n"
            "</shared-context>\n"
        ]

    def test_one_small_file_has_no_header(self, hash_counter):
        """Should emit one headerless chunk when everything fits the budget."""
        document = assemble([make_file("a.py", "#" * 500)], hash_counter, chunk_size=3000)

        assert len(document.chunks) == 1
        assert document.header is None
        assert document.total_chunks == 1
        assert "<shared-context-header" not in document.texts[0]
        assert "<file-map" not in document.texts[0]
        assert "<context-chunk" not in document.texts[0]

    def test_root_files_use_dot_folder(self, hash_counter):
        """Should label files with no folder as living in '.'."""
        document = assemble([make_file("README.md", "hi\n")], hash_counter)

        assert '<folder path=".">' in document.texts[0]
        assert 'folder="."' in document.texts[0]

    def test_unbounded_output_is_one_chunk(self, hash_counter):
        """Should never split with a chunk size of 0."""
        files = [make_file(f"f{i}.txt", "#" * 10_000) for i in range(3)]

        document = assemble(files, hash_counter, chunk_size=0)

        assert len(document.chunks) == 1
        assert document.header is None
        assert document.chunks[0].tokens == 30_000
        assert not document.oversize_chunks

    def test_empty_input(self, hash_counter):
        """Should render an empty context for no files."""
        document = assemble([], hash_counter)

        assert document.texts == ["<shared-context>\n</shared-context>\n"]
        assert document.file_map == ()

    def test_single_oversize_line(self, hash_counter):
        """Should emit an oversize line as one chunk without failing."""
        document = assemble([make_file("wide.txt", "#" * 1200)], hash_counter, chunk_size=1000)

        assert len(document.chunks) == 1
        assert document.header is None
        assert document.chunks[0].tokens == 1200
        assert document.chunks[0].plan.tokens == 1200
        assert document.oversize_chunks == [document.chunks[0]]

    def test_fitting_file_is_not_split(self, char_counter):
        """Should keep a file whole when the single document fits the budget."""
        files = [make_file("src/m.py", "x = 1\n" * 30)]
        single = assemble(files, char_counter).chunks[0].tokens

        document = assemble(files, char_counter, chunk_size=single + 5)

        assert len(document.chunks) == 1
        assert document.header is None
        assert document.chunks[0].tokens == single
        assert not document.oversize_chunks
        assert 'part="' not in document.texts[0]
        assert [entry.part_count for entry in document.file_map] == [1]

    def test_file_at_exact_budget_stays_whole(self, char_counter):
        """Should not split a file whose own fragment exactly fills the budget."""
        files = [make_file("src/m.py", "x = 1\n" * 30)]
        whole = DocumentAssembler(char_counter).planner.whole(order_files(files)[0])

        document = assemble(files, char_counter, chunk_size=whole.tokens)

        assert len(document.chunks) == 1
        assert document.header is None
        assert [f.part.label for f in document.chunks[0].plan.fragments] == ["1/1"]
        assert 'part="' not in document.texts[0]
        assert document.oversize_chunks == [document.chunks[0]]


class TestChunkedDocument:
    """Tests for output spread over several chunks."""

    def test_three_files_two_chunks(self, hash_counter, fixed_clock):
        """Should place two files in chunk 1 and announce three chunks."""
        document = assemble(three_files(), hash_counter, chunk_size=2000, clock=fixed_clock)

        assert len(document.chunks) == 2
        assert [
            [f.file.slash_path for f in chunk.plan.fragments] for chunk in document.chunks
        ] == [["src/a.py", "src/b.py"], ["src/c.py"]]
        assert document.header is not None
        assert document.total_chunks == 3

        first, second = document.texts
        assert first.startswith("<shared-context>\n<shared-context-header ")
        assert 'total-chunks="3"' in first
        assert 'chunk-size="2000"' in first
        assert 'generated-at="2024-05-01T12:00:00Z"' in first
        assert '<file-map total-files="3">' in first
        for file_id, path, tokens in [(0, "src/a.py", 1000), (1, "src/b.py", 1000), (2, "src/c.py", 1500)]:
            assert f'<file id="{file_id}" path="{path}" tokens="{tokens}" parts="1"/>' in first
        assert '<context-chunk id="2/3">' in first
        assert first.endswith('</context-chunk>\n<more remaining="1"/>\n')

        assert "<shared-context-header" not in second
        assert second.startswith('<context-chunk id="3/3">\n')
        assert second.endswith("</context-chunk>\n</shared-context>\n")

    def test_header_presence_law(self, char_counter, fixed_clock):
        """Should carry a header exactly when more than one chunk is emitted."""
        files = [make_file(f"pkg/m{i}.py", "x = 1\n" * 40) for i in range(6)]

        for chunk_size in (0, 600, 900, 1500, 5000, 100_000):
            document = assemble(files, char_counter, chunk_size=chunk_size, clock=fixed_clock)
            if document.header is not None:
                assert len(document.chunks) > 1
                assert document.header.total_chunks == len(document.chunks) + 1
                assert document.texts[0].count("<shared-context-header") == 1
                assert all("<shared-context-header" not in t for t in document.texts[1:])
            else:
                assert len(document.chunks) == 1
                assert "<shared-context-header" not in document.texts[0]

    def test_header_text_matches_rendered_header(self, hash_counter, fixed_clock):
        """Should prepend exactly the rendered header to chunk 1."""
        document = assemble(three_files(), hash_counter, chunk_size=2000, clock=fixed_clock)

        assert document.texts[0].startswith(
            "<shared-context>\n" + render_header(document.header)
        )

    def test_budget_respected(self, char_counter, fixed_clock):
        """Should keep every rendered chunk within the budget."""
        files = [
            make_file(f"pkg/sub{i % 2}/m{i}.py", "".join(f"value_{j} = {j}\n" for j in range(15 + i * 7)))
            for i in range(6)
        ]

        document = assemble(files, char_counter, chunk_size=1500, clock=fixed_clock)

        assert len(document.chunks) > 1
        assert not document.oversize_chunks
        assert all(chunk.tokens <= 1500 for chunk in document.chunks)
        assert all(chunk.tokens == char_counter.count(chunk.text) for chunk in document.chunks)

    def test_split_file_spans_chunks(self, hash_counter, fixed_clock):
        """Should spread a split file's parts over consecutive chunks."""
        content = "".join("#" * 500 + "\n" for _ in range(10))

        document = assemble([make_file("big.txt", content)], hash_counter, chunk_size=1000, clock=fixed_clock)

        assert len(document.chunks) == 5
        assert document.total_chunks == 6
        labels = [f.part.label for chunk in document.chunks for f in chunk.plan.fragments]
        assert labels == ["1/5", "2/5", "3/5", "4/5", "5/5"]
        assert 'parts="5"' in document.texts[0]
        assert 'tokens="5000"' in document.texts[0]

    def test_more_markers_count_down(self, hash_counter, fixed_clock):
        """Should tell the reader how many chunks remain after each one."""
        files = [make_file(f"f{i}.txt", "#" * 900) for i in range(4)]

        document = assemble(files, hash_counter, chunk_size=1000, clock=fixed_clock)

        total = document.total_chunks
        for chunk in document.chunks[:-1]:
            assert chunk.text.endswith(f'<more remaining="{total - chunk.index - 1}"/>\n')
        assert document.texts[-1].endswith("</shared-context>\n")


class TestRenderedSizeCheck:
    """Tests for re-packing chunks whose rendered size exceeds the plan."""

    def files(self):
        return [
            make_file(
                f"pkg/sub{i % 3}/m{i}.py",
                "".join(f"name_{i}_{j} = {j * 3}\n" for j in range(8 + i * 5)),
            )
            for i in range(9)
        ]

    @pytest.mark.parametrize("chunk_size", [600, 900, 1500, 3000])
    def test_non_additive_counter(self, fixed_clock, chunk_size):
        """Should keep every chunk with several fragments within the budget."""
        counter = SquaredCounter()
        files = self.files()

        document = assemble(files, counter, chunk_size=chunk_size, clock=fixed_clock)

        assert len(document.chunks) > 1
        for chunk in document.chunks:
            assert chunk.tokens == counter.count(chunk.text)
            if len(chunk.plan.fragments) > 1:
                assert chunk.tokens <= chunk_size
        assert reassemble(document.texts) == {file.slash_path: file.content for file in files}

    def test_counter_error_in_file_propagates(self, fixed_clock):
        """Should raise the counter's error rather than return a document."""
        files = [make_file("src/a.py", "a = 1\n"), make_file("src/boom.py", "boom = 2\n")]

        with pytest.raises(RuntimeError, match="boom"):
            assemble(files, FailingCounter("boom"), chunk_size=100, clock=fixed_clock)

    def test_counter_error_while_chunking_propagates(self, fixed_clock):
        """Should raise when counting a rendered chunk fails."""
        files = [make_file(f"src/m{i}.py", "x = 1\n" * 40) for i in range(4)]

        with pytest.raises(RuntimeError, match="context-chunk"):
            assemble(files, FailingCounter("<context-chunk"), chunk_size=400, clock=fixed_clock)


class TestDeterminism:
    """Tests for ordering and repeatability."""

    def test_same_output_for_any_input_order(self, char_counter, fixed_clock):
        """Should produce identical chunks regardless of input order."""
        files = [
            make_file("src/b.py", "b = 2\n" * 30),
            make_file("docs/intro.md", "# intro\n" * 25),
            make_file("src/a.py", "a = 1\n" * 50),
            make_file("setup.cfg", "[metadata]\n"),
        ]
        shuffled = files[:]
        random.Random(7).shuffle(shuffled)

        first = assemble(files, char_counter, chunk_size=900, clock=fixed_clock)
        second = assemble(shuffled, char_counter, chunk_size=900, clock=fixed_clock)

        assert first.texts == second.texts

    def test_file_map_follows_folder_order(self, hash_counter, fixed_clock):
        """Should number files by folder, then path."""
        files = [
            make_file("src/z.py", "#" * 600),
            make_file("docs/a.md", "#" * 600),
            make_file("src/a.py", "#" * 600),
        ]

        document = assemble(files, hash_counter, chunk_size=1000, clock=fixed_clock)

        assert [entry.path for entry in document.file_map] == ["docs/a.md", "src/a.py", "src/z.py"]
        assert [entry.id for entry in document.file_map] == [0, 1, 2]

    def test_assembler_keeps_settings(self, hash_counter):
        """Should expose the planner settings it was built with."""
        assembler = DocumentAssembler(hash_counter, chunk_size=250, escape=True)

        assert assembler.chunk_size == 250
        assert assembler.planner.escape


class TestRoundTrip:
    """Tests for rebuilding files from emitted chunks."""

    def test_reassembles_single_document(self, char_counter):
        """Should recover every file from a one-chunk document."""
        files = [make_file("src/a.py", "a = 1\n"), make_file("b.txt", "no newline")]

        document = assemble(files, char_counter)

        assert reassemble(document.texts) == {"b.txt": "no newline", "src/a.py": "a = 1\n"}

    def test_reassembles_split_files(self, char_counter, fixed_clock):
        """Should rebuild split files byte for byte from their parts."""
        files = [
            make_file("src/long.py", "".join(f"line_{i} = {i * i}\n" for i in range(120))),
            make_file("src/short.py", "pass\n"),
            make_file("notes/empty.txt", ""),
            make_file("notes/crlf.txt", "one\r\ntwo\r\n\r\n"),
        ]

        document = assemble(files, char_counter, chunk_size=800, clock=fixed_clock)

        assert len(document.chunks) > 2
        assert reassemble(document.texts) == {file.slash_path: file.content for file in files}

    def test_reassembles_escaped_content(self, char_counter, fixed_clock):
        """Should escape markup-like content and recover it unchanged."""
        content = 'if a < b && c > d:\n    print("</file-contents>")\n' * 20
        files = [make_file("src/tricky.py", content)]

        document = assemble(files, char_counter, chunk_size=700, escape=True, clock=fixed_clock)

        assert "&lt;/file-contents&gt;" in document.texts[-1]
        assert "a < b" not in "".join(document.texts)
        assert reassemble(document.texts, escape=True) == {"src/tricky.py": content}
