"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List


class ImageRecord(BaseModel):
    """
    A stored image as returned by GET /api/images.
    `sha` is the version marker GitHub requires for update and delete.
    `date` is None when the commit history carried no timestamp.
    """
    name: str
    url: str
    size: int
    date: Optional[datetime] = None
    sha: str

    model_config = ConfigDict(
        json_encoders={
            datetime: lambda v: v.isoformat()  # Format dates as ISO 8601 strings
        }
    )


class ImageListResponse(BaseModel):
    """Response for GET /api/images."""
    images: List[ImageRecord]


class UploadRequest(BaseModel):
    """
    Request schema for POST /api/upload.
    Fields are optional here so that missing values produce the
    endpoint's own 400 message instead of a schema error.
    """
    filename: Optional[str] = None
    content: Optional[str] = None  # base64-encoded file bytes
    size: Optional[int] = None


class UploadResponse(BaseModel):
    """Response for a successful upload."""
    success: bool = True
    url: str
    filename: str
    width: Optional[int] = None
    height: Optional[int] = None


class DeleteRequest(BaseModel):
    """Request schema for POST /api/delete."""
    filename: Optional[str] = None


class DeleteResponse(BaseModel):
    """Response for a successful delete."""
    success: bool = True
    message: str
