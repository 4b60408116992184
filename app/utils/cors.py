"""
CORS helpers shared by the exception handlers and the explicit OPTIONS routes.
"""
from fastapi import Response

ALLOWED_METHODS = ["GET", "POST", "OPTIONS", "PATCH", "DELETE", "PUT"]
ALLOWED_HEADERS = [
    "X-CSRF-Token",
    "X-Requested-With",
    "Accept",
    "Accept-Version",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "X-Api-Version",
]


def add_cors_headers(response: Response) -> Response:
    """
    Add permissive CORS headers to a response.
    Error responses and bare OPTIONS requests bypass CORSMiddleware's own
    header handling, so they get the same headers here.

    Args:
        response: The response to add headers to

    Returns:
        Response with CORS headers added
    """
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = ", ".join(ALLOWED_METHODS)
    response.headers["Access-Control-Allow-Headers"] = ", ".join(ALLOWED_HEADERS)

    return response


def preflight_response() -> Response:
    """Empty 200 answer for an OPTIONS request."""
    return add_cors_headers(Response(status_code=200))
