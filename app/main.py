"""Issue Log API - Main Application Module.

This module initializes the FastAPI application with proper configuration,
middleware, routing, exception handling and lifecycle management.
"""

import logging
import sys
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

# Add the project root to Python path if running directly
if __name__ == "__main__":
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_config_summary, settings
from app.core.logging_config import setup_logging
from app.database import Database
from app.domains.file.storage import BlobStorage
from app.schemas.base import ErrorDetail, ErrorResponse
from app.services.integrity_service import ReferentialIntegrityService

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


async def reconcile_storage(database: Database):
    """Drop orphaned comments, files and blobs left by interrupted deletes."""
    async with database.session() as session:
        report = await ReferentialIntegrityService(session).reconcile()
    if report.blob_failures:
        logger.error("Startup reconcile could not remove %d blob(s)", len(report.blob_failures))
    return report


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle events."""
    setup_logging()
    logger.info("Starting Issue Log API: %s", get_config_summary())

    database: Database = app.state.database
    # Development and tests create tables on startup; other environments manage the schema
    await database.connect(create_schema=settings.is_development or settings.is_testing)
    BlobStorage().ensure_root()
    if settings.reconcile_on_startup:
        await reconcile_storage(database)

    yield

    logger.info("Shutting down Issue Log API...")
    await database.disconnect()


def create_app(database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Issue Log API",
        description="Issue tracking with comments, file attachments and JWT authentication",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.database = database or Database(settings.database_url, echo=settings.db_echo)

    # Add middleware
    setup_middleware(app)

    # Add exception handlers
    setup_exception_handlers(app)

    # Include routers
    setup_routers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID and access log middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            extra={"request_id": request_id},
        )
        return response


def error_response(status_code: int, message: str, stack: str | None = None, headers=None):
    body = ErrorResponse(error=ErrorDetail(message=message, status_code=status_code, stack=stack))
    return JSONResponse(status_code=status_code, content=body.to_json(), headers=headers)


def setup_exception_handlers(app: FastAPI):
    """Configure global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Handle custom exceptions that have structured detail
        if isinstance(exc.detail, dict) and "message" in exc.detail:
            message = exc.detail["message"]
        elif exc.status_code == 404:
            message = f"Route {request.url.path} not found"
        else:
            message = str(exc.detail) if exc.detail else "An error occurred"

        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, message)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            msg = str(error.get("msg", "Validation error")).removeprefix("Value error, ")
            messages.append(f"{location}: {msg}" if location else msg)

        return error_response(400, "; ".join(messages) or "Validation error")

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return error_response(409, "Resource already exists")

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(500, "Database operation failed")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        if settings.is_development:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            return error_response(500, str(exc) or "Something went wrong", stack=stack)
        return error_response(500, "Something went wrong")


def setup_routers(app: FastAPI):
    """Configure application routers."""
    # Import routers
    from app.domains.auth.controller import router as auth_router
    from app.domains.comment.controller import router as comment_router
    from app.domains.file.controller import router as file_router
    from app.domains.issue.controller import router as issue_router

    @app.get("/health")
    async def health_check(request: Request):
        """Liveness check with database connectivity."""
        database: Database = request.app.state.database
        connected = database.is_connected and await database.ping()

        return {
            "success": True,
            "message": "Issue Log API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
            "environment": settings.environment.value,
            "database": "connected" if connected else "disconnected",
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "success": True,
            "name": settings.app_name,
            "version": settings.version,
            "docs": "/docs" if settings.is_development else None,
            "endpoints": "/api",
        }

    @app.get("/api")
    async def api_index(request: Request):
        """List every API endpoint with a one-line summary."""
        # Read from the OpenAPI document; app.routes nests included routers
        endpoints: dict[str, dict[str, str]] = {}
        for path, operations in sorted(request.app.openapi()["paths"].items()):
            if not path.startswith("/api/"):
                continue
            group = path.split("/")[2]
            for method, operation in sorted(operations.items()):
                text = (operation.get("description") or operation.get("summary") or "").strip()
                summary = text.splitlines()[0] if text else ""
                endpoints.setdefault(group, {})[f"{method.upper()} {path}"] = summary

        return {
            "success": True,
            "message": "Issue Log API Documentation",
            "version": settings.version,
            "endpoints": endpoints,
        }

    # Include domain routers
    app.include_router(auth_router)
    app.include_router(issue_router)
    app.include_router(comment_router)
    app.include_router(file_router)


# Create the application instance
app = create_app()


def main():
    """Entry point for running the application directly."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
