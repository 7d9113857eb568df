"""Token counting oracles."""

from ctxpack.counters.tiktoken_counter import TiktokenCounter

__all__ = ["TiktokenCounter"]
