"""Data models for ctxpack."""

from ctxpack.models.context import (
    ChunkPlan,
    ContextDocument,
    ContextHeader,
    FileMapEntry,
    Fragment,
    Part,
    RenderedChunk,
    SourceFile,
)

__all__ = [
    "SourceFile",
    "Part",
    "Fragment",
    "ChunkPlan",
    "FileMapEntry",
    "ContextHeader",
    "RenderedChunk",
    "ContextDocument",
]
