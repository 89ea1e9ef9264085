"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings
from .container import AppContainer, build_container
from .deps import get_settings
from .exceptions import DuplicateUserError, PersistenceError
from .routes import export, tasks, users
from .schemas import HealthResponse
from .utils.logging import log_shutdown_info, log_startup_info, setup_logging

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, error: Any, **extra: Any) -> JSONResponse:
    """Error body shared by every exception handler."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "status_code": status_code, "path": str(request.url), **extra},
    )


def create_app(settings: Optional[Settings] = None, container: Optional[AppContainer] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment
        container: Pre-built container; built from ``settings`` at startup when omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the repositories on startup and keep them on ``app.state``."""
        if settings.environment != "test":
            setup_logging(settings)
        log_startup_info(settings)

        try:
            app.state.container = container or build_container(settings)
        except Exception as e:
            logger.error(f"Error during application startup: {str(e)}")
            raise

        logger.info("Application startup completed successfully")

        yield

        log_shutdown_info()

    app = FastAPI(
        title="Task Ledger",
        description="Task tracking with users, categories, priorities and due dates",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url.path}")
        return _error_response(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies and query parameters."""
        details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        logger.warning(f"Validation error for {request.method} {request.url.path}: {details}")
        return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", details=details)

    @app.exception_handler(DuplicateUserError)
    async def duplicate_user_handler(request: Request, exc: DuplicateUserError):
        logger.warning(f"Duplicate {exc.field} for {request.method} {request.url.path}")
        return _error_response(request, status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_exception_handler(request: Request, exc: PersistenceError):
        """The change was applied in memory but is not durable."""
        logger.error(f"Persistence failure for {request.method} {request.url.path}: {str(exc)}")
        return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected error for {request.method} {request.url.path}: {str(exc)}", exc_info=True)
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.get("/healthz", response_model=HealthResponse, tags=["health"])
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint for monitoring.

        Returns:
            Health status, storage availability and collection sizes
        """
        current = getattr(request.app.state, "container", None)
        if current is None:
            return HealthResponse(status="starting", storage_available=False)

        return HealthResponse(
            status="healthy" if current.gateway.is_available else "degraded",
            storage_available=current.gateway.is_available,
            tasks=current.tasks.count(),
            users=current.users.count(),
        )

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Task Ledger API",
            "version": __version__,
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/tasks",
                "users": "/users",
                "export": "/export",
            },
        }

    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
    app.include_router(users.router, prefix="/users", tags=["users"])
    app.include_router(export.router, prefix="/export", tags=["export"])

    logger.info("FastAPI application created and configured")
    return app
