"""Exception types raised by ctxpack."""


class CtxPackError(Exception):
    """Base class for all ctxpack errors."""


class ConfigError(CtxPackError, ValueError):
    """Invalid configuration, rejected before any planning starts."""


class SourceNotFoundError(CtxPackError, FileNotFoundError):
    """A requested path does not exist or no ingester can handle it."""

    def __init__(self, source: str):
        super().__init__(f"Cannot process: {source}")
        self.source = source


class PlanningError(CtxPackError, RuntimeError):
    """Chunk planning could not settle on a consistent layout."""


class ReassemblyError(CtxPackError, ValueError):
    """A chunk sequence does not contain every part of every file."""


class ClipboardError(CtxPackError):
    """The system clipboard is unavailable."""
