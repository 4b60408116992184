"""
Display helpers for the gallery client.
File sizes, relative dates, search filtering and copy snippets.
"""
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.schemas import ImageRecord

SIZE_UNITS = ["Bytes", "KB", "MB"]

COPY_LABELS = {
    "direct": "Direct link copied!",
    "markdown": "Markdown copied!",
    "html": "HTML copied!",
}


def format_file_size(size: int) -> str:
    """
    Human readable size, e.g. 1536 -> "1.5 KB".
    Values of a gigabyte or more are still shown in MB.
    """
    if size <= 0:
        return "0 Bytes"

    index = 0
    value = float(size)
    while value >= 1024 and index < len(SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {SIZE_UNITS[index]}"


def format_date(date: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative date: "Today", "Yesterday", "N days ago", else YYYY-MM-DD."""
    if date is None:
        return "Unknown"

    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    days = math.floor((now - date).total_seconds() / 86400)
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return date.strftime("%Y-%m-%d")


def filter_images(images: Iterable[ImageRecord], query: str) -> List[ImageRecord]:
    """Case-insensitive substring match on the filename."""
    term = query.lower()
    return [image for image in images if term in image.name.lower()]


def copy_text(variant: str, image: ImageRecord) -> str:
    """
    Text placed on the clipboard for a copy action.

    Raises:
        ValueError: For an unknown variant
    """
    if variant == "direct":
        return image.url
    if variant == "markdown":
        return f"![{image.name}]({image.url})"
    if variant == "html":
        return f'<img src="{image.url}" alt="{image.name}">'
    raise ValueError(f"Unknown copy variant: {variant}")
