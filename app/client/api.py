"""
HTTP sources for the gallery client.

ImageHostApi talks to the image host server; DirectRepoApi reads a public
repository straight from the GitHub contents API (read-only).
"""
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional, Tuple

import httpx

from app.client.config_store import IMAGES_DIR, RepoConfig
from app.errors import ValidationError
from app.schemas import DeleteResponse, ImageRecord, UploadResponse
from app.utils.filenames import is_image_filename
from app.utils.image_info import encode_base64_content, get_image_info

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 15 * 1024 * 1024  # 15MB
ALLOWED_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"}


class GalleryApiError(Exception):
    """A request made by the gallery client failed."""


def validate_file(path: Path, max_size: int = MAX_FILE_SIZE) -> int:
    """
    Check a local file before uploading it.

    Returns:
        int: File size in bytes

    Raises:
        ValidationError: Unsupported type, oversized or missing file
    """
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type not in ALLOWED_TYPES:
        raise ValidationError("Invalid file type. Please upload PNG, JPG, GIF, or WEBP images.")

    try:
        size = path.stat().st_size
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e.strerror or str(e)}")

    if size > max_size:
        raise ValidationError(f"File {path.name} exceeds {max_size // (1024 * 1024)}MB limit.")
    return size


async def fetch_dimensions(client: httpx.AsyncClient, url: str) -> Optional[Tuple[int, int]]:
    """Download an image and read its pixel dimensions with Pillow."""
    try:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Could not load {url} for dimensions: {str(e)}")
        return None

    info = get_image_info(response.content)
    if info is None:
        return None
    return info["width"], info["height"]


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or default
    return default


class ImageHostApi:
    """
    Client for the image host's /upload, /images and /delete endpoints.

    Args:
        base_url: API base URL, e.g. "http://localhost:8000/api"
        timeout: Per-request timeout in seconds
        max_file_size: Largest file accepted for upload
        transport: Optional httpx transport (for tests)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_file_size: int = MAX_FILE_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.max_file_size = max_file_size
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, url: str, default_error: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GalleryApiError(str(e) or default_error)

        if not response.is_success:
            raise GalleryApiError(_error_message(response, default_error))

        try:
            return response.json()
        except ValueError:
            raise GalleryApiError(default_error)

    async def list_images(self) -> List[ImageRecord]:
        data = await self._send("GET", "/images", "Failed to load images")
        return [ImageRecord.model_validate(item) for item in data.get("images") or []]

    async def upload_file(self, path: Path) -> UploadResponse:
        """Validate, base64-encode and upload a local image file."""
        path = Path(path)
        size = validate_file(path, self.max_file_size)
        content = encode_base64_content(path.read_bytes())

        data = await self._send(
            "POST",
            "/upload",
            "Upload failed",
            json={"filename": path.name, "content": content, "size": size},
        )
        return UploadResponse.model_validate(data)

    async def delete_image(self, filename: str) -> DeleteResponse:
        data = await self._send("POST", "/delete", "Delete failed", json={"filename": filename})
        return DeleteResponse.model_validate(data)

    async def probe_dimensions(self, url: str) -> Optional[Tuple[int, int]]:
        return await fetch_dimensions(self._client, url)


class DirectRepoApi:
    """
    Read-only gallery source listing a public repository's images directory
    through the unauthenticated contents API. Commit dates are not fetched
    (the anonymous rate limit is too small for one request per image).

    Args:
        config: Stored repository coordinates
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (for tests)
    """

    def __init__(
        self,
        config: RepoConfig,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            headers={"Accept": "application/vnd.github+json"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_images(self) -> List[ImageRecord]:
        try:
            response = await self._client.get(self.config.contents_api_url())
        except httpx.HTTPError as e:
            raise GalleryApiError(str(e) or "Failed to load images")

        if response.status_code == 404:
            return []
        if not response.is_success:
            raise GalleryApiError(_error_message(response, "Failed to load images"))

        entries = response.json()
        if not isinstance(entries, list):
            entries = [entries]

        return [
            ImageRecord(
                name=entry["name"],
                url=self.config.raw_url(entry.get("path") or f"{IMAGES_DIR}/{entry['name']}"),
                size=entry.get("size", 0),
                sha=entry["sha"],
            )
            for entry in entries
            if entry.get("type") == "file" and is_image_filename(entry.get("name", ""))
        ]

    async def upload_file(self, path: Path) -> UploadResponse:
        raise GalleryApiError("Direct repository mode is read-only")

    async def delete_image(self, filename: str) -> DeleteResponse:
        raise GalleryApiError("Direct repository mode is read-only")

    async def probe_dimensions(self, url: str) -> Optional[Tuple[int, int]]:
        return await fetch_dimensions(self._client, url)
