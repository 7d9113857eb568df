"""System clipboard delivery."""

import logging

import pyperclip

from ctxpack.errors import ClipboardError

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str, fail_hard: bool = False) -> bool:
    """Copy text to the clipboard.

    Args:
        text: Text to copy
        fail_hard: Raise instead of warning when no clipboard is available

    Returns:
        True if the text was copied
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        if fail_hard:
            raise ClipboardError(f"Clipboard copy failed: {e}") from e
        logger.warning(f"Clipboard unavailable: {e}")
        return False
    return True
