"""CLI entry point for ctxpack."""

import argparse
import logging
import sys
from typing import Optional

from ctxpack.chunkers import assemble
from ctxpack.config import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_FILE_SIZE, GatherConfig
from ctxpack.counters import TiktokenCounter
from ctxpack.errors import ClipboardError, ConfigError, CtxPackError, SourceNotFoundError
from ctxpack.ingesters import gather_sources
from ctxpack.models import ContextDocument, SourceFile
from ctxpack.protocols import TokenCounter
from ctxpack.utils import copy_to_clipboard

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

EXIT_INPUT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INDEX_OUT_OF_RANGE = 3


def non_negative_int(value: str) -> int:
    """argparse type for token and byte counts."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {number}")
    return number


def make_counter(model_name: str) -> TokenCounter:
    return TiktokenCounter(model_name)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctxpack",
        description="ctxpack - pack source files into LLM-ready context chunks",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files, folders or glob patterns (default: current directory)",
    )
    parser.add_argument(
        "-c",
        "--chunk-size",
        type=non_negative_int,
        default=DEFAULT_CHUNK_SIZE,
        help="Token budget per chunk; 0 emits one document (default: 0)",
    )
    parser.add_argument(
        "--chunk-index",
        type=int,
        help="1-based chunk to copy to the clipboard (default: 1)",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Write every chunk to stdout",
    )
    parser.add_argument(
        "--no-clipboard",
        action="store_true",
        help="Do not copy anything to the clipboard",
    )
    parser.add_argument(
        "--escape-xml",
        action="store_true",
        help="Escape &, < and > in file contents",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip files matching this glob (repeatable)",
    )
    parser.add_argument(
        "--max-size",
        type=non_negative_int,
        default=DEFAULT_MAX_FILE_SIZE,
        metavar="BYTES",
        help=f"Skip files larger than this (default: {DEFAULT_MAX_FILE_SIZE})",
    )
    parser.add_argument(
        "--model-context",
        type=non_negative_int,
        metavar="N",
        help="Warn when the total token count exceeds this context window",
    )
    parser.add_argument(
        "--tokenizer-model",
        metavar="NAME",
        help="Model whose tokenizer counts tokens (env: CTXPACK_TOKENIZER_MODEL)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Open the Chunk Deck TUI to pick files and copy chunks",
    )
    mode.add_argument(
        "-m",
        "--multi-step",
        action="store_true",
        help="Send the file map first, then files on request",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    return parser


def gather(config: GatherConfig) -> list[SourceFile]:
    """Discover files, or exit if there is nothing to pack."""
    files = gather_sources(config.paths, config.exclude, config.max_size)
    if not files:
        logger.error("No files found.")
        sys.exit(EXIT_INPUT_ERROR)
    return files


def deliver(document: ContextDocument, config: GatherConfig) -> Optional[int]:
    """Write and copy chunks as configured; returns the copied chunk index."""
    requested = config.chunk_index
    if requested is not None and requested > len(document.chunks):
        logger.error(f"Chunk index {requested} is out of range (1-{len(document.chunks)})")
        sys.exit(EXIT_INDEX_OUT_OF_RANGE)

    if config.stdout:
        for text in document.texts:
            sys.stdout.write(text)
        sys.stdout.flush()

    index = config.copy_index
    if index is None:
        return None
    if copy_to_clipboard(document.chunks[index - 1].text):
        return index
    return None


def pack(config: GatherConfig, counter: TokenCounter) -> None:
    """Gather, plan and deliver chunks for one invocation."""
    files = gather(config)
    document = assemble(files, counter, config.chunk_size, config.escape_xml)

    total = document.total_tokens
    if config.model_context is not None and total > config.model_context:
        logger.warning(
            f"Total of {total} tokens exceeds the model context of {config.model_context}"
        )

    copied = deliver(document, config)
    logger.info(
        f"{len(files)} files, {total} tokens, {len(document.chunks)} chunks, "
        f"copied={copied if copied is not None else 'none'}"
    )
    if not config.stdout and copied is None:
        logger.info("Nothing was written or copied; use --stdout to print the chunks.")


def multi_step(config: GatherConfig, counter: TokenCounter) -> None:
    """Run the header-first session on stdin/stdout."""
    from ctxpack.multistep import MultiStepSession, default_copy

    files = gather(config)
    session = MultiStepSession(
        files,
        counter,
        chunk_size=config.chunk_size,
        escape=config.escape_xml,
        copy=None if config.no_clipboard else default_copy,
    )
    session.run(sys.stdin, sys.stdout)


def interactive(config: GatherConfig, counter: TokenCounter) -> None:
    """Launch the Chunk Deck TUI."""
    # Import here to avoid loading textual unless needed
    from ctxpack.deck import run_deck

    files = gather(config)
    copy = None if config.no_clipboard else copy_to_clipboard
    run_deck(files, counter, config.chunk_size, config.escape_xml, copy)


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = GatherConfig.from_args(args)
    except ConfigError as e:
        logger.error(f"Error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    counter = make_counter(config.tokenizer_model)
    try:
        if config.multi_step:
            multi_step(config, counter)
        elif config.interactive:
            interactive(config, counter)
        else:
            pack(config, counter)
    except SourceNotFoundError as e:
        logger.error(str(e))
        logger.error("Supported inputs: files, folders, glob patterns")
        sys.exit(EXIT_INPUT_ERROR)
    except ClipboardError as e:
        logger.error(f"Clipboard error: {e}")
        sys.exit(EXIT_INPUT_ERROR)
    except (CtxPackError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(EXIT_INPUT_ERROR)


if __name__ == "__main__":
    main()
