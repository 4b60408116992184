"""
Image routes: upload, list and delete images stored in the GitHub repository.
Each endpoint also answers OPTIONS for CORS preflight.
"""
from fastapi import APIRouter, Depends, Request
import logging

from app.config import settings
from app.errors import ImageHostError, UpstreamError
from app.schemas import (
    DeleteRequest,
    DeleteResponse,
    ImageListResponse,
    UploadRequest,
    UploadResponse,
)
from app.services.github_service import GitHubConnector, get_github_connector
from app.services.image_service import (
    delete_image,
    list_images,
    upload_image,
    validate_delete_filename,
    validate_upload,
)
from app.utils.cors import preflight_response
from app.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.options("/upload", include_in_schema=False)
@router.options("/images", include_in_schema=False)
@router.options("/delete", include_in_schema=False)
async def preflight():
    """CORS preflight for every image endpoint."""
    return preflight_response()


@router.post("/upload", response_model=UploadResponse)
@limiter.limit(RATE_LIMITS["upload"])
async def upload(
    request: Request,
    body: UploadRequest,
    connect: GitHubConnector = Depends(get_github_connector)
):
    """
    Upload a base64-encoded image to the repository.

    The stored filename is sanitized and always receives a timestamp suffix,
    so repeated uploads of the same name never collide.

    Args:
        request: Incoming request (used by the rate limiter)
        body: {filename, content (base64), size}
        connect: GitHub client connector (injected by FastAPI dependency)

    Returns:
        UploadResponse: Raw URL and final filename

    Raises:
        ValidationError: 400 if fields are missing or the file is too large
        ConfigurationError: 500 if GitHub credentials are not configured
        UpstreamError: 500 if GitHub rejects the write
    """
    try:
        data = validate_upload(body, settings.MAX_UPLOAD_SIZE)

        async with connect() as github:
            result = await upload_image(github, body, max_size=settings.MAX_UPLOAD_SIZE, data=data)

        logger.info(f"Uploaded {body.filename} as {result.filename}")
        return result

    except ImageHostError:
        raise
    except Exception as e:
        logger.error(f"Upload error: {str(e)}", exc_info=True)
        raise UpstreamError(str(e) or "Upload failed")


@router.get("/images", response_model=ImageListResponse)
async def get_images(connect: GitHubConnector = Depends(get_github_connector)):
    """
    List stored images, newest first.

    Returns:
        ImageListResponse: Image records with raw URL, size, date and sha

    Raises:
        ConfigurationError: 500 if GitHub credentials are not configured
        UpstreamError: 500 if the directory listing fails
    """
    try:
        async with connect() as github:
            images = await list_images(github)
        return ImageListResponse(images=images)

    except ImageHostError:
        raise
    except Exception as e:
        logger.error(f"List images error: {str(e)}", exc_info=True)
        raise UpstreamError(str(e) or "Failed to list images")


@router.post("/delete", response_model=DeleteResponse)
@limiter.limit(RATE_LIMITS["delete"])
async def delete(
    request: Request,
    body: DeleteRequest,
    connect: GitHubConnector = Depends(get_github_connector)
):
    """
    Delete an image by filename.

    Args:
        request: Incoming request (used by the rate limiter)
        body: {filename}
        connect: GitHub client connector (injected by FastAPI dependency)

    Returns:
        DeleteResponse: Success confirmation

    Raises:
        ValidationError: 400 if filename is missing
        NotFoundError: 404 if the file does not exist
        ConfigurationError: 500 if GitHub credentials are not configured
        UpstreamError: 500 if GitHub rejects the delete
    """
    try:
        filename = validate_delete_filename(body.filename)

        async with connect() as github:
            result = await delete_image(github, filename)

        logger.info(f"Deleted {filename}")
        return result

    except ImageHostError:
        raise
    except Exception as e:
        logger.error(f"Delete error: {str(e)}", exc_info=True)
        raise UpstreamError(str(e) or "Delete failed")
