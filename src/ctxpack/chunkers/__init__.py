"""Chunk planning, rendering and reassembly."""

from ctxpack.chunkers.assembler import DocumentAssembler, assemble
from ctxpack.chunkers.grouping import order_files
from ctxpack.chunkers.planner import ChunkPlanner
from ctxpack.chunkers.reassembly import reassemble

__all__ = ["ChunkPlanner", "DocumentAssembler", "assemble", "order_files", "reassemble"]
