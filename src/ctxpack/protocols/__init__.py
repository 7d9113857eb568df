"""Protocol definitions for extensible components."""

from ctxpack.protocols.counter import TokenCounter
from ctxpack.protocols.ingester import Ingester

__all__ = ["Ingester", "TokenCounter"]
