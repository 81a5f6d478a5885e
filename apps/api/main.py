"""FastAPI application for MetricHub API.

This module provides the main FastAPI application with:
- Request context middleware (request id, correlation id, timing)
- JSON error envelope for application and domain errors
- Health endpoint

Collaborators are wired in apps.api.dependencies from the environment.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from metrichub import __version__
from metrichub.application.errors import (
    ApplicationError,
    InsufficientDataError,
    SheetFetchError,
    ValidationError,
)
from metrichub.domain.errors import DomainError
from metrichub.infrastructure.bootstrap import bootstrap_config, configure_logging_from
from metrichub.shared.logging import get_logger
from metrichub.shared.logging.context import bind_request_context, clear_request_context

from apps.api.dependencies import get_container
from apps.api.routers import metrics

logger = get_logger("apps.api")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware for request context management and observability."""

    async def dispatch(self, request: Request, call_next):
        request_id = bind_request_context(request.headers.get("x-request-id"))
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as error:
            logger.error(
                "http_request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error=str(error),
                error_type=error.__class__.__name__,
            )
            clear_request_context()
            raise

        duration_ms = (time.time() - start_time) * 1000
        response.headers["x-request-id"] = request_id
        response.headers["x-response-time"] = f"{duration_ms:.2f}ms"

        logger.info(
            "http_request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        clear_request_context()
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    configure_logging_from(bootstrap_config())
    container = get_container()
    logger.info(
        "metrichub_api_starting",
        version=__version__,
        environment=container.config.ENVIRONMENT.value,
        alias_table_version=container.engine.resolver.registry.version,
    )

    yield

    logger.info("metrichub_api_shutting_down")


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def error_status(exc: Exception) -> int:
    """HTTP status for an application or domain error."""
    if isinstance(exc, SheetFetchError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, (InsufficientDataError, ValidationError, DomainError)):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_400_BAD_REQUEST


def create_app() -> FastAPI:
    app = FastAPI(
        title="MetricHub API",
        description="Metric normalization and marketing-funnel analytics",
        version=__version__,
        openapi_url="/openapi.json",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError):
        """Handle application errors."""
        status_code = error_status(exc)
        logger.warning(
            "application_error",
            error=exc.message,
            error_type=exc.__class__.__name__,
            status=status_code,
            path=request.url.path,
        )
        return _error_response(request, status_code, exc.__class__.__name__, exc.message)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        """Handle domain errors (e.g. invalid threshold overrides)."""
        return _error_response(request, error_status(exc), exc.__class__.__name__, exc.message)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": __version__,
        }

    app.include_router(
        metrics.router,
        prefix="/metrics",
        tags=["metrics"],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "apps.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_config=None,  # Use our custom logging
    )
