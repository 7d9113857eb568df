"""Markup rendering for file blocks, folder wrappers and chunk wrappers.

Every file block frames its content with exactly one newline on each side:

    <file-contents id="0" path="src/a.py" name="a.py" folder="src">
    ...content, byte for byte...
    </file-contents>

so a consumer can recover the content without guessing about trailing
newlines.
"""

from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape as _xml_escape

from ctxpack.models import Part, SourceFile

FILE_INDENT = "    "
FOLDER_INDENT = "  "

CONTEXT_OPEN = "<shared-context>\n"
CONTEXT_CLOSE = "</shared-context>\n"
FILE_CLOSE = f"\n{FILE_INDENT}</file-contents>\n"

_ATTR_ENTITIES = {'"': "&quot;"}


def escape_text(text: str, enabled: bool) -> str:
    """Replace &, < and > with entities when escaping is enabled."""
    return _xml_escape(text) if enabled else text


def escape_attr(value: str, enabled: bool) -> str:
    """Escape an attribute value; also covers double quotes."""
    return _xml_escape(value, _ATTR_ENTITIES) if enabled else value


def split_lines(text: str) -> list[str]:
    """Split text after every '\\n', keeping the terminators.

    Unlike str.splitlines this only breaks on '\\n', so '\\r' and other
    separators stay inside their line. "".join(result) == text.
    """
    lines = text.split("\n")
    result = [line + "\n" for line in lines[:-1]]
    if lines[-1]:
        result.append(lines[-1])
    return result


def render_file_open(file: SourceFile, part: Optional[Part], escape: bool) -> str:
    attrs = (
        f'id="{file.id}" '
        f'path="{escape_attr(file.slash_path, escape)}" '
        f'name="{escape_attr(file.name, escape)}" '
        f'folder="{escape_attr(file.slash_folder, escape)}"'
    )
    if part is not None and part.is_split:
        attrs += f' part="{part.label}"'
    return f"{FILE_INDENT}<file-contents {attrs}>\n"


def render_fragment(file: SourceFile, part: Part, escape: bool) -> str:
    """Render a whole file or one part as a self-contained file block."""
    return render_file_open(file, part, escape) + escape_text(part.content, escape) + FILE_CLOSE


def render_folder_open(folder: Path, escape: bool) -> str:
    return f'{FOLDER_INDENT}<folder path="{escape_attr(folder.as_posix(), escape)}">\n'


def render_folder_close() -> str:
    return f"{FOLDER_INDENT}</folder>\n"


def render_chunk_open(position: int, total: int) -> str:
    return f'<context-chunk id="{position}/{total}">\n'


def render_chunk_close() -> str:
    return "</context-chunk>\n"


def render_more(remaining: int) -> str:
    return f'<more remaining="{remaining}"/>\n'
