"""
FastAPI application entry point.
Main application instance with middleware and route configuration.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from app.config import settings
from app.errors import ImageHostError, MethodNotAllowedError
from app.services.github_service import validate_github_config
from app.routes import images
from app.utils.cors import add_cors_headers, ALLOWED_METHODS, ALLOWED_HEADERS
from app.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

# Rate limiter state used by the slowapi decorators
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS Middleware Configuration
# The gallery may be served from any origin; nothing relies on cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard origin
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
    max_age=3600,  # Cache preflight requests for 1 hour
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their response status."""
    method = request.method
    path = request.url.path
    origin = request.headers.get("origin", "No origin header")

    logger.debug(f"Incoming {method} request to {path} from origin: {origin}")

    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code} for {method} {path}")
        return response
    except Exception as e:
        logger.error(
            f"Error processing {method} {path}: {str(e)}\n"
            f"  Origin: {origin}\n"
            f"  Error type: {type(e).__name__}",
            exc_info=True
        )
        raise


# Include routers
app.include_router(images.router, prefix="/api", tags=["images"])


# Exception Handlers
@app.exception_handler(ImageHostError)
async def image_host_exception_handler(request: Request, exc: ImageHostError):
    """Map the error taxonomy to {"error": message} responses."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__} on {request.method} {request.url.path}:\n"
        f"  Status: {exc.status_code}\n"
        f"  Message: {exc.message}"
    )
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message}
    )
    return add_cors_headers(response)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle routing-level HTTP exceptions (404, 405) with the same error body."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return await image_host_exception_handler(request, MethodNotAllowedError())

    logger.warning(
        f"HTTPException on {request.method} {request.url.path}:\n"
        f"  Status: {exc.status_code}\n"
        f"  Detail: {exc.detail}"
    )
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)}
    )
    return add_cors_headers(response)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Handle malformed request bodies (e.g. non-JSON payloads)."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}:\n"
        f"  Errors: {exc.errors()}"
    )
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request body",
            "detail": jsonable_errors(exc)
        }
    )
    return add_cors_headers(response)


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors reduced to JSON-safe fields."""
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n"
        f"  Error: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )
    return add_cors_headers(response)


# Root Endpoints
@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/github")
async def health_check_github():
    """
    GitHub health check endpoint.
    Reports whether the repository configuration is complete.
    """
    if validate_github_config():
        return {
            "github": "configured",
            "status": "healthy",
            "repository": f"{settings.GITHUB_OWNER}/{settings.GITHUB_REPO}",
            "branch": settings.GITHUB_BRANCH
        }
    return {
        "github": "not_configured",
        "status": "warning",
        "missing": settings.missing_github_settings()
    }


@app.on_event("startup")
async def startup_event():
    """
    Validate the GitHub configuration once on startup.
    Non-blocking: image endpoints answer 500 until it is fixed.
    """
    if validate_github_config():
        logger.info(
            f"Serving images from {settings.GITHUB_OWNER}/{settings.GITHUB_REPO}"
            f"@{settings.GITHUB_BRANCH}/{settings.IMAGES_DIR}"
        )
    else:
        logger.error(
            "GitHub configuration incomplete. Set GITHUB_TOKEN, GITHUB_OWNER and GITHUB_REPO; "
            "image endpoints will answer 'Server configuration error' until then."
        )
