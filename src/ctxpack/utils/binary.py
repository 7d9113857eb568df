"""Binary file detection utilities."""

import codecs
from pathlib import Path

# Common binary file extensions
BINARY_EXTENSIONS = {
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods",
    # Archives
    ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz",
    # Executables
    ".exe", ".dll", ".so", ".dylib", ".bin",
    # Media
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".mkv", ".webm",
    # Compiled
    ".pyc", ".pyo", ".class", ".o", ".obj", ".wasm",
    # Fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    # Other
    ".db", ".sqlite", ".sqlite3",
}

SAMPLE_SIZE = 4096


def is_binary_extension(path: str | Path) -> bool:
    """Check if file extension indicates binary content."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(content: bytes, sample_size: int = SAMPLE_SIZE) -> bool:
    """Detect binary content from a leading sample.

    Args:
        content: Raw file content
        sample_size: Number of bytes to sample from the start

    Returns:
        True if the sample holds a NUL byte or is not valid UTF-8
    """
    if not content:
        return False

    sample = content[:sample_size]

    # Null bytes are a strong binary indicator
    if b"\x00" in sample:
        return True

    # The sample may end inside a multi-byte character, so decode
    # incrementally rather than requiring a complete sequence.
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=len(sample) == len(content))
    except UnicodeDecodeError:
        return True
    return False


def detect_binary(path: str | Path, content: bytes) -> bool:
    """Detect if a file is binary using both extension and content analysis.

    Args:
        path: File path (for extension check)
        content: Raw file content

    Returns:
        True if file is binary
    """
    # Fast path: check extension first
    if is_binary_extension(path):
        return True

    # Fall back to content analysis
    return is_binary_content(content)
