"""Utility functions for ctxpack."""

from ctxpack.utils.binary import detect_binary, is_binary_content, is_binary_extension
from ctxpack.utils.clipboard import copy_to_clipboard
from ctxpack.utils.paths import display_path, matches_any

__all__ = [
    "detect_binary",
    "is_binary_content",
    "is_binary_extension",
    "copy_to_clipboard",
    "display_path",
    "matches_any",
]
