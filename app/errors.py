"""
Error taxonomy for the image host.
Every error carries the HTTP status it maps to; the exception handler in
app.main turns them into {"error": message} responses.
"""
from typing import Optional, List


class ImageHostError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ImageHostError):
    """Missing, malformed or oversized request input."""
    status_code = 400


class NotFoundError(ImageHostError):
    """Requested object does not exist in the repository."""
    status_code = 404


class MethodNotAllowedError(ImageHostError):
    """Endpoint called with an unsupported HTTP method."""
    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class ConfigurationError(ImageHostError):
    """Server is missing GitHub credentials or repository coordinates."""
    status_code = 500

    def __init__(self, message: str = "Server configuration error", missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class UpstreamError(ImageHostError):
    """
    Any other failure reported by GitHub.
    The upstream message is passed through verbatim.
    """
    status_code = 500

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
