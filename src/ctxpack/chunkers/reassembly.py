"""Rebuild file contents from a chunk sequence.

This reads the exact framing the renderer writes; it is not an XML parser.
With escaping disabled, a file whose content itself contains a
"</file-contents>" line cannot be recovered reliably.
"""

import re
from typing import Iterable
from xml.sax.saxutils import unescape

from ctxpack.chunkers.fragments import FILE_CLOSE, FILE_INDENT
from ctxpack.errors import ReassemblyError

_FILE_OPEN = re.compile(
    rf'^{FILE_INDENT}<file-contents id="(?P<id>\d+)" path="(?P<path>[^"]*)"'
    r'[^\n]*?(?: part="(?P<index>\d+)/(?P<count>\d+)")?>\n',
    re.MULTILINE,
)
_ATTR_ENTITIES = {"&quot;": '"'}


def iter_blocks(text: str, escape: bool = False) -> Iterable[tuple[str, int, int, str]]:
    """Yield (path, part_index, part_count, content) for each file block."""
    position = 0
    while True:
        match = _FILE_OPEN.search(text, position)
        if match is None:
            return
        close = text.find(FILE_CLOSE, match.end())
        if close < 0:
            raise ReassemblyError(f"Unterminated file block for {match.group('path')}")
        path = match.group("path")
        content = text[match.end() : close]
        if escape:
            path = unescape(path, _ATTR_ENTITIES)
            content = unescape(content)
        index = int(match.group("index") or 1)
        count = int(match.group("count") or 1)
        yield path, index, count, content
        position = close + len(FILE_CLOSE)


def reassemble(chunks: Iterable[str], escape: bool = False) -> dict[str, str]:
    """Return {path: content} for every file in the chunk sequence.

    Args:
        chunks: Chunk texts in plan order
        escape: Whether the chunks were rendered with escaping enabled

    Returns:
        File contents keyed by path, in first-seen order

    Raises:
        ReassemblyError: If any file is missing, repeating or mislabelling parts
    """
    parts: dict[str, dict[int, str]] = {}
    counts: dict[str, int] = {}
    for path, index, count, content in iter_blocks("".join(chunks), escape):
        if counts.setdefault(path, count) != count:
            raise ReassemblyError(f"{path}: inconsistent part counts")
        received = parts.setdefault(path, {})
        if index in received or not 1 <= index <= count:
            raise ReassemblyError(f"{path}: unexpected part {index}/{count}")
        received[index] = content

    files = {}
    for path, received in parts.items():
        if len(received) != counts[path]:
            raise ReassemblyError(
                f"{path}: received {len(received)} of {counts[path]} parts"
            )
        files[path] = "".join(received[index] for index in sorted(received))
    return files
