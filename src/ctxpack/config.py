"""Defaults and validated run configuration."""

import argparse
import os
from dataclasses import dataclass, field
from typing import Optional

from ctxpack.errors import ConfigError

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_CHUNK_SIZE = 0
HEADER_VERSION = 1

DEFAULT_TOKENIZER_MODEL = "gpt-4o"
FALLBACK_ENCODING = "o200k_base"
TOKENIZER_MODEL_ENV = "CTXPACK_TOKENIZER_MODEL"


def default_tokenizer_model() -> str:
    """Tokenizer model from the environment, else the built-in default."""
    return os.environ.get(TOKENIZER_MODEL_ENV) or DEFAULT_TOKENIZER_MODEL


def validate_chunk_size(chunk_size: object) -> int:
    """Return the chunk size if it is a usable token budget.

    Zero means unbounded (a single chunk). Booleans are rejected even though
    they are ints.
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise ConfigError(f"chunk size must be an integer, got {chunk_size!r}")
    if chunk_size < 0:
        raise ConfigError(f"chunk size must not be negative, got {chunk_size}")
    return chunk_size


@dataclass(frozen=True)
class GatherConfig:
    """Everything one ctxpack invocation needs, checked up front."""

    paths: tuple[str, ...] = (".",)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_index: Optional[int] = None
    escape_xml: bool = False
    exclude: tuple[str, ...] = ()
    max_size: int = DEFAULT_MAX_FILE_SIZE
    model_context: Optional[int] = None
    stdout: bool = False
    no_clipboard: bool = False
    interactive: bool = False
    multi_step: bool = False
    tokenizer_model: str = field(default_factory=default_tokenizer_model)

    def __post_init__(self) -> None:
        validate_chunk_size(self.chunk_size)
        if self.max_size <= 0:
            raise ConfigError(f"--max-size must be positive, got {self.max_size}")
        if self.chunk_index is not None:
            if self.chunk_size == 0:
                raise ConfigError("--chunk-index requires --chunk-size")
            if self.chunk_index < 1:
                raise ConfigError(f"--chunk-index starts at 1, got {self.chunk_index}")
        if self.model_context is not None and self.model_context <= 0:
            raise ConfigError("--model-context must be positive")
        if self.interactive and self.multi_step:
            raise ConfigError("--interactive and --multi-step cannot be combined")

    @property
    def copy_index(self) -> Optional[int]:
        """1-based chunk to copy, or None when the clipboard is disabled."""
        if self.no_clipboard:
            return None
        return self.chunk_index or 1

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "GatherConfig":
        """Build a config from parsed CLI arguments."""
        return cls(
            paths=tuple(args.paths or ["."]),
            chunk_size=args.chunk_size,
            chunk_index=args.chunk_index,
            escape_xml=args.escape_xml,
            exclude=tuple(args.exclude or ()),
            max_size=args.max_size,
            model_context=args.model_context,
            stdout=args.stdout,
            no_clipboard=args.no_clipboard,
            interactive=args.interactive,
            multi_step=args.multi_step,
            tokenizer_model=args.tokenizer_model or default_tokenizer_model(),
        )
