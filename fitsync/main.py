"""fitsync API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fitsync.api.admin import router as admin_router
from fitsync.api.categories import router as categories_router
from fitsync.api.dependencies import close_shopify_client
from fitsync.api.fit_terms import router as fit_terms_router
from fitsync.api.fitments import router as fitments_router
from fitsync.api.health import router as health_router
from fitsync.api.middleware import setup_middleware
from fitsync.api.product_categories import router as product_categories_router
from fitsync.api.public import router as public_router
from fitsync.domain.exceptions import DomainError
from fitsync.infrastructure.config import settings
from fitsync.infrastructure.logging_config import configure_logging
from fitsync.infrastructure.shopify_client import ShopifyClientError

logger = structlog.get_logger()

# Domain error code -> HTTP status
ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_PARENT": status.HTTP_400_BAD_REQUEST,
    "CYCLE_DETECTED": status.HTTP_400_BAD_REQUEST,
    "DUPLICATE": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "HAS_CHILDREN": status.HTTP_409_CONFLICT,
    "IN_USE": status.HTTP_409_CONFLICT,
    "CORRUPT_HIERARCHY": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "EXTERNAL_WRITE_FAILED": status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    configure_logging(settings.log_level)
    logger.info(
        "Starting fitsync API",
        version=settings.api_version,
        debug=settings.debug,
        store_backend=settings.store_backend,
        shop=settings.shopify_shop or None,
    )

    yield

    # Shutdown
    await close_shopify_client()
    logger.info("Shutting down fitsync API")


app = FastAPI(
    title="fitsync API",
    description="Category taxonomy, vehicle fitment and Shopify metafield sync",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, API key auth, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(categories_router)
app.include_router(fit_terms_router)
app.include_router(product_categories_router)
app.include_router(fitments_router)
app.include_router(public_router)
app.include_router(admin_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details or {},
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to HTTP statuses."""
    status_code = ERROR_STATUS.get(exc.error_code, status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error(
            "Domain error",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )
    return _error_response(request, status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(ShopifyClientError)
async def shopify_exception_handler(
    request: Request, exc: ShopifyClientError
) -> JSONResponse:
    """Shopify failures outside write-through surface as 502."""
    logger.warning("Shopify call failed", path=request.url.path, error=exc.message)
    return _error_response(
        request,
        status.HTTP_502_BAD_GATEWAY,
        "SHOPIFY_ERROR",
        exc.message,
        {"upstream_status": exc.status_code} if exc.status_code else None,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return _error_response(request, exc.status_code, error_code, message, details)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
