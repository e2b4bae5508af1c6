"""
FastAPI main application for the Bookshelf API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import APIConfig
from api.deps import build_services
from api.models import HealthResponse, collect_violations, respond_error, violation_message
from api.routers import authors, books, users
from catalog.database import Database
from catalog.errors import AppError
from utilities.config import AppConfig

logger = structlog.get_logger(__name__)


def create_app(
    app_config: Optional[AppConfig] = None,
    api_config: Optional[APIConfig] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        app_config: Store, token and logging settings (read from the environment if omitted)
        api_config: HTTP settings (read from the environment if omitted)
    """
    app_config = app_config or AppConfig()
    api_config = api_config or APIConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info("Starting Bookshelf API", version=api_config.api_version)

        database = Database(app_config)
        try:
            await database.create_schema()
        except Exception as e:
            logger.error("Failed to prepare database", error=str(e))
            await database.dispose()
            raise

        app.state.services = build_services(app_config, database)

        yield

        # Shutdown
        logger.info("Shutting down Bookshelf API")
        await database.dispose()

    app = FastAPI(
        title=api_config.api_title,
        description="""
    A REST API for managing a catalog of authors and books.

    ## Authentication

    Register and log in under `/auth` to obtain a token. Every author and
    book endpoint requires it in the Authorization header:

    ```
    Authorization: Bearer your_token_here
    ```

    ## Responses

    Every response is wrapped in an envelope carrying `data`, a `data_hash`
    of it, `pagination` on listings and `error` on failures.
    """,
        version=api_config.api_version,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_credentials=api_config.cors_allow_credentials,
        allow_methods=api_config.cors_allow_methods,
        allow_headers=api_config.cors_allow_headers,
    )

    register_exception_handlers(app)

    for router in (users.router, authors.router, books.router):
        app.include_router(router, prefix=api_config.api_prefix)

    # Health check endpoint (no authentication required)
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        db_status = "unknown"
        services = getattr(request.app.state, "services", None)
        if services is not None:
            health_info = await services.database.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            database_status=db_status,
        )

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure in the response envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """Handle application errors raised by the use cases."""
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, status_code=exc.status_code, error=exc.message)
        else:
            logger.info("Request rejected", path=request.url.path, status_code=exc.status_code, error=exc.message)

        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return respond_error(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request payloads that fail to parse or validate."""
        violations = collect_violations(exc.errors())
        logger.info(
            "Request validation failed",
            path=request.url.path,
            violations=[v.model_dump(mode="json") for v in violations],
        )
        return respond_error(status.HTTP_400_BAD_REQUEST, violation_message(violations))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return respond_error(exc.status_code, str(exc.detail), exc.headers)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return respond_error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


# Create FastAPI application
app = create_app()
