"""Context header: the file map and reading instructions for chunk 1."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from ctxpack.chunkers.fragments import escape_attr
from ctxpack.config import HEADER_VERSION
from ctxpack.models import ContextHeader, FileMapEntry

ACK_TOKEN = "READY"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """RFC 3339 in UTC with second precision, e.g. 2024-05-01T12:00:00Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def chunked_instructions(total_chunks: int) -> str:
    return (
        f"You will receive {total_chunks} chunks (including this header).\n"
        'Reassemble files in <file-map> order; a split file carries part="i/n" '
        "on each block, join its parts by index.\n"
        f'Respond "{ACK_TOKEN}" after the final chunk.'
    )


def multi_step_instructions() -> str:
    return (
        "This header lists the shared files; their contents are not included yet.\n"
        "Ask for the files you need by id or path and they will be sent as "
        "<file-contents> blocks.\n"
        f'Respond "{ACK_TOKEN}" once you have read the file map.'
    )


def build_header(
    file_map: Iterable[FileMapEntry],
    total_chunks: int,
    chunk_size: int,
    generated_at: datetime,
    instructions: Optional[str] = None,
) -> ContextHeader:
    """Build the header once the full plan is known.

    Args:
        file_map: Entries for every file, in id order
        total_chunks: Emitted chunks plus the header slot
        chunk_size: Requested token budget
        generated_at: Generation time; stored at second precision
        instructions: Reading instructions (defaults to the chunked text)

    Returns:
        The ContextHeader for chunk 1
    """
    return ContextHeader(
        version=HEADER_VERSION,
        total_chunks=total_chunks,
        chunk_size=chunk_size,
        generated_at=generated_at.replace(microsecond=0),
        file_map=tuple(file_map),
        instructions=(
            instructions if instructions is not None else chunked_instructions(total_chunks)
        ),
    )


def render_header(header: ContextHeader, escape: bool = False) -> str:
    """Render the header block prepended to the first chunk."""
    lines = [
        f'<shared-context-header version="{header.version}" '
        f'total-chunks="{header.total_chunks}" chunk-size="{header.chunk_size}" '
        f'generated-at="{format_timestamp(header.generated_at)}">',
        f'  <file-map total-files="{len(header.file_map)}">',
    ]
    for entry in header.file_map:
        lines.append(
            f'    <file id="{entry.id}" path="{escape_attr(entry.path, escape)}" '
            f'tokens="{entry.total_tokens}" parts="{entry.part_count}"/>'
        )
    lines.append("  </file-map>")
    lines.append("  <instructions>")
    lines.extend(f"    {line}" for line in header.instructions.splitlines())
    lines.append("  </instructions>")
    lines.append("</shared-context-header>")
    return "\n".join(lines) + "\n"
