"""Folder grouping: the single ordering every later stage replays."""

import dataclasses
from itertools import groupby
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from ctxpack.chunkers.fragments import render_folder_close, render_folder_open
from ctxpack.models import Fragment, SourceFile


def ordering_key(file: SourceFile) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Sort by folder, then path, compared segment by segment.

    Comparing path parts instead of raw strings keeps "a/b" ahead of "a-b"
    on every platform.
    """
    return Path(file.folder).parts, Path(file.path).parts


def order_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    """Return files in folder/path order with ids 0..N-1 stamped."""
    ordered = sorted(files, key=ordering_key)
    return [dataclasses.replace(file, id=index) for index, file in enumerate(ordered)]


def group_by_folder(fragments: Sequence[Fragment]) -> Iterator[tuple[Path, list[Fragment]]]:
    """Yield runs of adjacent fragments that share a folder."""
    for folder, run in groupby(fragments, key=lambda fragment: fragment.file.folder):
        yield folder, list(run)


def render_groups(fragments: Sequence[Fragment], escape: bool) -> str:
    """Render fragments with a folder wrapper around each adjacent run."""
    out = []
    for folder, run in group_by_folder(fragments):
        out.append(render_folder_open(folder, escape))
        out.extend(fragment.markup for fragment in run)
        out.append(render_folder_close())
    return "".join(out)
