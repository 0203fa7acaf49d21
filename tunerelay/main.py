"""
FastAPI Application Entry Point

This is the main application module that configures and runs the
tune relay server.

The relay:
- Resolves radio page URLs to stream URLs (POST /soundcloud)
- Identifies uploaded clips through the fingerprinting API (POST /shazam)
- Renders every error as a JSON `{"message": ...}` body

Run with: uvicorn tunerelay.main:app --host 0.0.0.0 --port 3000
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import RelayError
from .core.utils import get_timestamp
from .api.routes import router
from .storage.uploads import upload_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}


# ============================================================
# Application Lifespan Handler
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: create the upload directory and log the configuration.
    """
    # ---- Startup ----
    upload_storage.ensure_dir()

    logger.info("=" * 60)
    logger.info("TUNE RELAY STARTING")
    logger.info("=" * 60)
    logger.info(f"Server Port: {settings.server_port}")
    logger.info(f"API Version: {settings.api_version}")
    logger.info(f"Allowed Origin: {settings.cors_origin}")
    logger.info(f"Upload Dir: {upload_storage.upload_dir}")
    logger.info(f"Recognition Keys: {len(settings.recognition.key_pool)}")

    if not len(settings.recognition.key_pool):
        logger.warning("⚠ RAPIDAPI_KEY is not set, /shazam will answer 503")

    logger.info("=" * 60)

    yield  # Application runs here

    # ---- Shutdown ----
    logger.info("Relay shutting down...")


# ============================================================
# FastAPI Application Instance
# ============================================================

app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


# ============================================================
# Middleware Configuration
# ============================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(RelayError)
async def relay_exception_handler(request: Request, exc: RelayError):
    """Render relay errors with their own status and message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handle routing and framework HTTP errors.

    Unmatched routes arrive here as 404 with detail "Not Found". A
    known path called with the wrong method is also unmatched, and
    answers 404 too since 405 means "all API keys exhausted" here.
    """
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": "Not Found"}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
):
    """
    Handle validation errors with a clean response.

    Returns 422 with details about what failed validation.
    """
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "message": "Validation failed",
            "detail": jsonable_errors(exc)
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unexpected errors and answer with their status (default 500) and message."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(
        status_code=status_code,
        content={"message": str(exc) or "Internal Server Error"}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors stripped of values that may not serialize."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# ============================================================
# Route Registration
# ============================================================

app.include_router(router, tags=["Relay"])


# ============================================================
# Root Endpoint
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """Basic service info."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "description": settings.api_description,
        "endpoints": {
            "resolve_stream": "POST /soundcloud",
            "identify_track": "POST /shazam",
            "health": "GET /health",
            "docs": "GET /docs"
        },
        "timestamp": get_timestamp()
    }


# ============================================================
# Run Configuration (for direct execution)
# ============================================================

if __name__ == "__main__":
    import uvicorn

    port = settings.server_port

    print("=" * 60)
    print("TUNE RELAY")
    print("=" * 60)
    print(f"Binding to 0.0.0.0:{port}")
    print(f"Docs: http://localhost:{port}/docs")
    print("=" * 60)

    uvicorn.run(
        "tunerelay.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        workers=1,
        log_level="info"
    )
