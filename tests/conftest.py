import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to sys.path so we can import ctxpack
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from ctxpack.models import SourceFile  # noqa: E402

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class HashCounter:
    """Counts '#' characters, so markup is free and content costs are exact."""

    model_name = "hash"

    def count(self, text: str) -> int:
        return text.count("#")


class CharCounter:
    """Counts characters, so every byte of markup has a cost."""

    model_name = "chars"

    def count(self, text: str) -> int:
        return len(text)


def make_file(path: str, content: str) -> SourceFile:
    """Build a SourceFile the way discovery would for a relative path."""
    file_path = Path(path)
    return SourceFile(folder=file_path.parent, path=file_path, content=content)


@pytest.fixture
def hash_counter():
    return HashCounter()


@pytest.fixture
def char_counter():
    return CharCounter()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME
