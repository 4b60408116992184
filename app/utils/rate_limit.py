"""
Rate limiting utilities for API endpoints.
Uses slowapi to keep a single client from flooding the GitHub repository.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from app.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.

    Args:
        request: FastAPI request object

    Returns:
        str: Client identifier (IP address)
    """
    # Check for forwarded IP (if behind reverse proxy)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Get first IP in chain (original client)
        return forwarded.split(",")[0].strip()

    # Fall back to direct remote address
    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://"
)


# Rate limit configurations for specific use cases
RATE_LIMITS = {
    "upload": settings.RATE_LIMIT_UPLOAD,
    "delete": settings.RATE_LIMIT_DELETE,
}
