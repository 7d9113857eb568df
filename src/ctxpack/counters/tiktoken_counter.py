"""tiktoken-based token counter."""

import logging
from typing import Optional

import tiktoken

from ctxpack.config import FALLBACK_ENCODING, default_tokenizer_model

logger = logging.getLogger(__name__)

# Typographic dashes people paste into model names
_DASHES = str.maketrans(
    {c: "-" for c in ("\u2010", "\u2011", "\u2012", "\u2013", "\u2014", "\u2212")}
)


def normalize_model_name(model: str) -> str:
    """Lowercase a model name and fold unicode dashes to '-'."""
    return model.strip().lower().translate(_DASHES)


class TiktokenCounter:
    """Token counter using the tiktoken library.

    Resolves the encoding from a model name (gpt-4o by default, or the
    CTXPACK_TOKENIZER_MODEL environment variable). Models tiktoken does not
    know fall back to o200k_base.
    """

    def __init__(self, model_name: Optional[str] = None):
        """Initialize the counter.

        Args:
            model_name: Model whose encoding should be used.
                       Defaults to CTXPACK_TOKENIZER_MODEL or gpt-4o.
        """
        self._model_name = normalize_model_name(model_name or default_tokenizer_model())
        self._encoding: Optional[tiktoken.Encoding] = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        """Lazy-load the encoding on first access."""
        if self._encoding is None:
            try:
                self._encoding = tiktoken.encoding_for_model(self._model_name)
            except KeyError:
                logger.debug(
                    f"No tiktoken encoding for {self._model_name}; using {FALLBACK_ENCODING}"
                )
                self._encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
        return self._encoding

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        return self._model_name

    def count(self, text: str) -> int:
        """Count tokens in text.

        Special-token strings are counted as the model would see them,
        since file contents can legitimately contain them.
        """
        if not text:
            return 0
        return len(self.encoding.encode(text, allowed_special="all"))
