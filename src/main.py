"""
Learning Content Engine

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middleware.request_id import RequestIdMiddleware
from src.api.v1 import router as api_v1_router
from src.config import get_settings
from src.database import async_session_maker, close_db, init_db
from src.engines.caching import TTLCache
from src.engines.scoring import OpenAIScoringOracle
from src.kernel.errors import (
    Conflict,
    ContentServiceError,
    ExhaustedRetries,
    NotFound,
    Unauthenticated,
    Unauthorized,
    UpstreamFailure,
)
from src.kernel.store import SqlAlchemyStore
from src.logging_config import configure_logging, get_logger
from src.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

# Most specific first; IncompleteContent is a Conflict
_ERROR_STATUS = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (Unauthenticated, status.HTTP_401_UNAUTHORIZED),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (UpstreamFailure, status.HTTP_502_BAD_GATEWAY),
    (ExhaustedRetries, status.HTTP_503_SERVICE_UNAVAILABLE),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Configures logging, creates tables and seeds the XP level table, then
    builds the process-wide store, cache and scoring oracle.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    app.state.store = SqlAlchemyStore(async_session_maker)
    app.state.cache = TTLCache(default_ttl=settings.cache_ttl_content)
    app.state.oracle = OpenAIScoringOracle(settings)

    yield

    logger.info("Shutting down...")
    app.state.cache.invalidate()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Learning Content Engine

    ## Features

    - **Content hierarchy**: learning paths, courses, modules, lessons and challenges
    - **Status cascade**: unpublishing or archiving a node moves its whole subtree
    - **Challenges**: graded submissions with XP tiers and retake limits
    - **Progress & XP**: per-user progress, levels and streaks
    - **Certificates**: issued on completion, publicly verifiable by code
    - **Analytics**: platform, content and per-user roll-ups
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first, so CORS (added last) wraps everything
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:3000",
]

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses (500s often bypass CORS middleware)."""
    origin = request.headers.get("origin") or ""
    allow_origin = origin if origin in _cors_origins else _cors_origins[0]
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


def _error_headers(request: Request) -> dict:
    headers = _cors_headers(request)
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


@app.exception_handler(ContentServiceError)
async def content_service_exception_handler(request: Request, exc: ContentServiceError):
    """Map engine errors onto HTTP statuses."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error("%s failed: %s", exc.operation or "request", exc.message, extra={"code": exc.code})
    content = {"detail": exc.message, "code": exc.code, "operation": exc.operation}
    if exc.details:
        content["details"] = exc.details
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        content["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=content, headers=_error_headers(request))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Ensure 401/403/404 etc. responses have CORS headers."""
    headers = _error_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    content = {"detail": exc.detail}
    req_id = headers.get("X-Request-ID")
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })
    headers = _error_headers(request)
    content = {"detail": "Validation error", "errors": errors}
    if "X-Request-ID" in headers:
        content["request_id"] = headers["X-Request-ID"]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
        headers=headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    key = (settings.openai_api_key or "").strip()
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected",
        scoring_oracle_configured=bool(key and not key.startswith("sk-your-")),
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": "/api/v1",
        },
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
