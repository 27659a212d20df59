"""StoreLink Backend - Main FastAPI Application

Provider connection lifecycle and catalog synchronization for sellers.

This module creates and configures the main FastAPI application, including:
- API routers (sellers, integrations, products)
- Middleware (request ID correlation, CORS)
- Exception handlers mapping engine errors to HTTP responses
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .errors import (
    IntegrationError,
    ValidationError,
    SellerNotFound,
    CatalogItemNotFound,
    ProviderUnreachable,
    InitialSyncFailed,
    OperationInProgress,
    NotConnected,
    NotPendingActivation,
    ManagedItemError,
)
from .providers.registry_init import initialize_providers

# Observability
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router

# Domain Routers
from .sellers.router import router as sellers_router
from .connections.router import router as connections_router
from .catalog.router import router as products_router

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: register provider adapters
    - Shutdown: log only; sessions and provider clients are per request
    """
    logger.info("StoreLink API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    initialize_providers()

    yield

    logger.info("StoreLink API shutting down...")


app = FastAPI(
    title="StoreLink API",
    description="Provider connection lifecycle and catalog synchronization",
    version="0.1.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

# Checked in order; subclasses before their bases
ERROR_STATUS_CODES = (
    (ManagedItemError, status.HTTP_409_CONFLICT, "managed_item"),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error"),
    (SellerNotFound, status.HTTP_404_NOT_FOUND, "seller_not_found"),
    (CatalogItemNotFound, status.HTTP_404_NOT_FOUND, "catalog_item_not_found"),
    (InitialSyncFailed, status.HTTP_502_BAD_GATEWAY, "initial_sync_failed"),
    (ProviderUnreachable, status.HTTP_502_BAD_GATEWAY, "provider_unreachable"),
    (OperationInProgress, status.HTTP_409_CONFLICT, "operation_in_progress"),
    (NotConnected, status.HTTP_409_CONFLICT, "not_connected"),
    (NotPendingActivation, status.HTTP_409_CONFLICT, "not_pending_activation"),
)


@app.exception_handler(IntegrationError)
async def integration_exception_handler(
    request: Request,
    exc: IntegrationError
) -> JSONResponse:
    """Map engine errors to HTTP status codes with a structured body."""
    status_code, error = status.HTTP_400_BAD_REQUEST, "integration_error"
    for error_class, code, name in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            status_code, error = code, name
            break

    content = {"error": error, "message": str(exc)}
    if isinstance(exc, InitialSyncFailed) and exc.summary is not None:
        content["summary"] = jsonable_encoder(exc.summary)

    logger.warning(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        extra={"status": status_code}
    )
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns a structured error response with field-level details.
    """
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics)
app.include_router(observability_router)

app.include_router(sellers_router, prefix="/api/v1")
app.include_router(connections_router, prefix="/api/v1")
app.include_router(products_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "StoreLink API",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if settings.ENVIRONMENT != "production" else None,
    }


def create_app() -> FastAPI:
    """Application factory for tests and ASGI servers."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storelink.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
