"""Protocol for token counting oracles."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for token counting oracles.

    Allows swapping between tiktoken encodings, other tokenizers, or a
    canned cost function in tests. Implementations must be deterministic:
    the same text always yields the same count.
    """

    @property
    def model_name(self) -> str:
        """Return identifier for the tokenizer used."""
        ...

    def count(self, text: str) -> int:
        """Return the number of tokens in text (never negative)."""
        ...
