"""Obras API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from obras.api.budgets import router as budgets_router
from obras.api.health import router as health_router
from obras.api.materials import router as materials_router
from obras.api.middleware import setup_middleware
from obras.api.work_orders import router as work_orders_router
from obras.domain import DomainError
from obras.infrastructure.config import settings
from obras.infrastructure.database import engine
from obras.infrastructure.document_client import DocumentServiceError
from obras.infrastructure.logging_config import configure_logging

configure_logging(level=settings.log_level, json_output=not settings.debug)

logger = structlog.get_logger()

# HTTP status for each domain error code; anything unlisted is a 400.
DOMAIN_ERROR_STATUS: dict[str, int] = {
    "ILLEGAL_TRANSITION": status.HTTP_409_CONFLICT,
    "BUDGET_NOT_READY": status.HTTP_409_CONFLICT,
    "VERSION_NOT_EDITABLE": status.HTTP_409_CONFLICT,
    "ITEM_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VERSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_OWNED_BY_WORK_ORDER": status.HTTP_404_NOT_FOUND,
    "CONCURRENT_VERSION_CONFLICT": status.HTTP_409_CONFLICT,
    "INVALID_QUANTITY_OR_PRICE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "DUPLICATE_TICKET_LINK": status.HTTP_409_CONFLICT,
    "WORK_ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "WORK_ORDER_NOT_EDITABLE": status.HTTP_409_CONFLICT,
    "WORK_ORDER_NOT_DELETABLE": status.HTTP_409_CONFLICT,
    "INVALID_LINE_ITEM": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "REFERENCE_NOT_FOUND": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_WORK_ORDER_FIELD": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "COMMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_COMMENT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_ATTACHMENT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CONCURRENT_UPDATE": status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting Obras API",
        version=settings.api_version,
        debug=settings.debug,
    )

    yield

    logger.info("Shutting down Obras API")
    await engine.dispose()


app = FastAPI(
    title="Obras API",
    description="Work-order lifecycle and versioned budget engine",
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
app.include_router(work_orders_router)
app.include_router(budgets_router)
app.include_router(materials_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict | list,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render expected business-rule failures as client errors."""
    status_code = DOMAIN_ERROR_STATUS.get(exc.error_code, status.HTTP_400_BAD_REQUEST)
    logger.info(
        "Domain error",
        error_code=exc.error_code,
        path=request.url.path,
        method=request.method,
        details=exc.details,
    )
    return _error_response(request, status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(DocumentServiceError)
async def document_service_error_handler(
    request: Request, exc: DocumentServiceError
) -> JSONResponse:
    """Renderer or storage failures are upstream errors."""
    logger.error(
        "Document service failed",
        service=exc.service,
        status_code=exc.status_code,
        error=exc.message,
    )
    return _error_response(
        request,
        status.HTTP_502_BAD_GATEWAY,
        "DOCUMENT_SERVICE_ERROR",
        exc.message,
        {"service": exc.service},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []
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
        [],
    )
