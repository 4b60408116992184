"""
Image operations on top of the GitHub contents API.
Upload, list and delete images stored in the repository's images directory.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from app.errors import NotFoundError, UpstreamError, ValidationError
from app.schemas import DeleteResponse, ImageRecord, UploadRequest, UploadResponse
from app.services.github_service import GitHubService
from app.utils.filenames import current_timestamp_ms, is_image_filename, is_plain_filename, sanitize_filename
from app.utils.image_info import decode_base64_content, encode_base64_content, get_image_info

logger = logging.getLogger(__name__)

# Attempts at finding a free name when the generated one already exists
MAX_NAME_ATTEMPTS = 5


def validate_upload(request: UploadRequest, max_size: int) -> bytes:
    """
    Validate an upload payload without touching GitHub.

    Args:
        request: Upload request body
        max_size: Maximum file size in bytes

    Returns:
        bytes: Decoded file content

    Raises:
        ValidationError: Missing fields, oversized file or invalid base64
    """
    if not request.filename or not request.content:
        raise ValidationError("Missing filename or content")

    limit_mb = max_size // (1024 * 1024)
    if request.size is not None and request.size > max_size:
        raise ValidationError(f"File size exceeds {limit_mb}MB limit")

    data = decode_base64_content(request.content)
    if len(data) > max_size:
        raise ValidationError(f"File size exceeds {limit_mb}MB limit")

    return data


async def upload_image(
    github: GitHubService,
    request: UploadRequest,
    max_size: int,
    clock: Callable[[], int] = current_timestamp_ms,
    data: Optional[bytes] = None
) -> UploadResponse:
    """
    Store an uploaded image under a fresh, sanitized filename.

    The generated name is checked against the repository first; on the rare
    collision the timestamp suffix is bumped, so an upload never overwrites.

    Args:
        github: GitHub client
        request: Upload request body
        max_size: Maximum file size in bytes
        clock: Source of the millisecond timestamp suffix
        data: Content already returned by validate_upload, if the caller ran it

    Returns:
        UploadResponse: Raw URL and final filename
    """
    if data is None:
        data = validate_upload(request, max_size)

    info = get_image_info(data)
    if info:
        logger.info(
            f"Upload {request.filename}: {info['format']} {info['width']}x{info['height']}, "
            f"{info['bytes']:,} bytes"
        )
    else:
        logger.warning(f"Upload {request.filename} is not a recognizable image, storing as-is")

    timestamp = clock()
    for _ in range(MAX_NAME_ATTEMPTS):
        filename = sanitize_filename(request.filename, timestamp)
        path = github.config.image_path(filename)
        existing = await github.get_content(path)
        if not existing.found:
            break
        logger.info(f"Generated name {filename} already exists (sha {existing.sha}), retrying")
        timestamp += 1
    else:
        raise UpstreamError(f"Could not allocate a unique filename for {request.filename}")

    await github.put_content(path, encode_base64_content(data), message=f"Upload {filename}")

    return UploadResponse(
        url=github.raw_url(path),
        filename=filename,
        width=info["width"] if info else None,
        height=info["height"] if info else None,
    )


async def _build_record(github: GitHubService, entry: dict) -> ImageRecord:
    """Turn a directory entry into an ImageRecord with its last commit date."""
    date = await github.latest_commit_date(entry["path"])
    return ImageRecord(
        name=entry["name"],
        url=github.raw_url(entry["path"]),
        size=entry.get("size", 0),
        date=date,
        sha=entry["sha"],
    )


def sort_images(images: List[ImageRecord]) -> List[ImageRecord]:
    """Newest first; records without a date go last, in their original order."""
    dated = [img for img in images if img.date is not None]
    undated = [img for img in images if img.date is None]
    dated.sort(key=lambda img: img.date, reverse=True)
    return dated + undated


async def list_images(github: GitHubService) -> List[ImageRecord]:
    """
    List images in the images directory, newest first.

    A missing directory yields an empty list. Commit lookups run concurrently;
    a file whose lookup fails is left out instead of failing the request.

    Args:
        github: GitHub client

    Returns:
        list[ImageRecord]: Images sorted by date descending
    """
    lookup = await github.get_content(github.config.images_dir)
    if not lookup.found:
        logger.info(f"Directory {github.config.images_dir} does not exist yet, returning no images")
        return []

    files = [
        entry for entry in lookup.entries
        if entry.get("type") == "file" and is_image_filename(entry.get("name", ""))
    ]

    results = await asyncio.gather(
        *[_build_record(github, entry) for entry in files],
        return_exceptions=True
    )

    images = []
    for entry, result in zip(files, results):
        if isinstance(result, Exception):
            logger.error(f"Error getting info for {entry.get('name')}: {str(result)}")
            continue
        images.append(result)

    logger.info(f"Listed {len(images)} image(s) ({len(files) - len(images)} skipped)")
    return sort_images(images)


def validate_delete_filename(filename: Optional[str]) -> str:
    """
    Check a delete request without touching GitHub.

    Raises:
        ValidationError: Missing or non-plain filename
    """
    if not filename:
        raise ValidationError("Missing filename")
    if not is_plain_filename(filename):
        raise ValidationError("Invalid filename")
    return filename


async def delete_image(github: GitHubService, filename: Optional[str]) -> DeleteResponse:
    """
    Delete an image by filename.

    Raises:
        ValidationError: Missing or non-plain filename
        NotFoundError: No such file in the images directory
    """
    filename = validate_delete_filename(filename)

    path = github.config.image_path(filename)
    existing = await github.get_content(path)
    if not existing.found or not existing.sha:
        raise NotFoundError("File not found")

    await github.delete_content(path, existing.sha, message=f"Delete {filename}")
    return DeleteResponse(message="File deleted successfully")
