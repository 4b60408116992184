"""
Image inspection utilities.
Decodes upload payloads and reads basic image information with Pillow.
"""
import base64
import binascii
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.errors import ValidationError

logger = logging.getLogger(__name__)


def decode_base64_content(content: str) -> bytes:
    """
    Decode a base64 upload payload.
    Accepts a bare base64 string or a data URL ("data:image/png;base64,...").

    Args:
        content: Base64 text sent by the client

    Returns:
        bytes: Decoded file bytes

    Raises:
        ValidationError: If the content is not valid base64
    """
    if content.startswith("data:") and "," in content:
        content = content.split(",", 1)[1]
    # Line-wrapped base64 (MIME style) is accepted
    content = "".join(content.split())

    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Rejected upload with invalid base64 content: {str(e)}")
        raise ValidationError("Invalid base64 content")


def encode_base64_content(data: bytes) -> str:
    """Encode bytes for the GitHub contents API."""
    return base64.b64encode(data).decode("ascii")


def get_image_info(image_bytes: bytes) -> Optional[dict]:
    """
    Get basic information about an image.

    Args:
        image_bytes: Image file bytes

    Returns:
        dict: Image information (format, width, height, mode, bytes) or None if
        the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            width, height = image.size
            return {
                "format": image.format,
                "width": width,
                "height": height,
                "mode": image.mode,
                "bytes": len(image_bytes),
            }
    except UnidentifiedImageError as e:
        logger.debug(f"Cannot identify image format: {str(e)}")
        return None
    except Exception as e:
        logger.debug(f"Error getting image info: {str(e)}")
        return None
