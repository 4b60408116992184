"""
Filename helpers for stored images.
Sanitizes user supplied names and recognizes image extensions.
"""
import re
import time
from typing import Optional

# Characters allowed in stored filenames; everything else becomes "_"
_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9._-]")

_IMAGE_NAME = re.compile(r"\.(png|jpg|jpeg|gif|webp)$", re.IGNORECASE)

DEFAULT_EXTENSION = ".png"


def current_timestamp_ms() -> int:
    """Milliseconds since the epoch, used as the uniqueness suffix."""
    return time.time_ns() // 1_000_000


def normalize_filename(filename: str) -> str:
    """
    Replace disallowed characters and ensure an extension.

    Args:
        filename: Name as supplied by the uploader

    Returns:
        str: Name containing only [a-zA-Z0-9._-] with at least one "."
    """
    normalized = _DISALLOWED_CHARS.sub("_", filename)
    if "." not in normalized:
        normalized += DEFAULT_EXTENSION
    return normalized


def sanitize_filename(filename: str, timestamp: Optional[int] = None) -> str:
    """
    Build the stored filename for an upload.

    The name is normalized and a "_<timestamp>" suffix is inserted before the
    last extension, e.g. "my cat.jpg" -> "my_cat_1700000000000.jpg".

    Args:
        filename: Name as supplied by the uploader
        timestamp: Suffix to use (defaults to the current time in ms)

    Returns:
        str: Sanitized, suffixed filename
    """
    if timestamp is None:
        timestamp = current_timestamp_ms()

    normalized = normalize_filename(filename)
    name, ext = normalized.rsplit(".", 1)
    return f"{name}_{timestamp}.{ext}"


def is_image_filename(filename: str) -> bool:
    """True if the name ends with a recognized image extension (any case)."""
    return bool(_IMAGE_NAME.search(filename))


def is_plain_filename(filename: str) -> bool:
    """True if the name addresses a file directly inside the images directory."""
    if not filename or filename in (".", ".."):
        return False
    return "/" not in filename and "\\" not in filename
