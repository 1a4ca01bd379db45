"""Main FastAPI application with middleware and configuration."""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import Settings, configure_logging
from app.schemas.error_models import (
    GenerationAPIException,
    InternalServerError,
    ValidationError,
    create_error_response
)
from app.services.catalog import Catalog
from app.services.generation_service import GenerationService
from app.services.upstream_client import UpstreamStreamClient, create_http_client
from app.api.routes import generation_router


logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        """Process request and log details.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            HTTP response
        """
        # Generate request ID
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        # Log request
        start_time = time.time()
        logger.info(
            f"Request {request_id}: {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)

            # For streamed bodies this is time to headers, not to last frame
            process_time = time.time() - start_time
            logger.info(
                f"Request {request_id}: {response.status_code} "
                f"({process_time:.3f}s)"
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.3f}"

            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id}: Error after {process_time:.3f}s - {str(e)}"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the HTTP client and catalog for the application's lifetime.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings
    logger.info("Starting marketplace generation API server...")

    app.state.startup_time = time.time()
    app.state.request_count = 0

    http_client = create_http_client(settings, transport=app.state.upstream_transport)
    catalog: Catalog = app.state.catalog

    try:
        await catalog.open()
        app.state.generation_service = GenerationService(
            catalog=catalog,
            upstream_client=UpstreamStreamClient(http_client, settings),
            settings=settings
        )

        logger.info("Server startup completed successfully")
        yield

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    finally:
        logger.info("Shutting down server...")

        app.state.generation_service = None
        await catalog.close()
        await http_client.aclose()

        logger.info("Server shutdown completed")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    catalog: Optional[Catalog] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Application settings (optional)
        transport: HTTP transport override for upstream calls (optional)
        catalog: Catalog override (optional)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Marketplace Generation API",
        description="Streams AI-generated marketplace listings and auto-responses",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan
    )

    # Add middleware (order matters - last added is executed first)

    # Request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            expose_headers=["X-Request-ID", "X-Process-Time"]
        )

    # Trusted host middleware (for production)
    if settings.trusted_hosts:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.trusted_hosts
        )

    # Store settings and collaborators in app state
    app.state.settings = settings
    app.state.upstream_transport = transport
    app.state.catalog = catalog or Catalog()
    app.state.generation_service = None

    return app


def setup_exception_handlers(app: FastAPI):
    """Set up global exception handlers.

    Every handler renders a plain ``{"error": message}`` body.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(GenerationAPIException)
    async def generation_exception_handler(request: Request, exc: GenerationAPIException):
        """Handle pre-stream generation errors."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(f"Request {request_id}: {exc.status_code} - {exc.message}")

        headers = dict(exc.headers or {})
        headers["X-Request-ID"] = request_id

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle unparseable request bodies.

        Args:
            request: HTTP request
            exc: Validation error

        Returns:
            JSON error response
        """
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(f"Request {request_id}: Validation error - {exc}")

        error_details = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            error_details.append(f"{field}: {error['msg']}")

        validation_error = ValidationError("Invalid request: " + "; ".join(error_details))

        return JSONResponse(
            status_code=validation_error.status_code,
            content=validation_error.detail,
            headers={"X-Request-ID": request_id}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions such as unknown routes."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(f"Request {request_id}: HTTP {exc.status_code} - {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(str(exc.detail)),
            headers={"X-Request-ID": request_id}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(f"Request {request_id}: Unexpected error - {exc}", exc_info=True)

        internal_error = InternalServerError("An unexpected error occurred")

        return JSONResponse(
            status_code=internal_error.status_code,
            content=internal_error.detail,
            headers={"X-Request-ID": request_id}
        )


def create_application(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    catalog: Optional[Catalog] = None
) -> FastAPI:
    """Create the main FastAPI application with all configurations.

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = Settings()

    app = create_app(settings, transport=transport, catalog=catalog)

    setup_exception_handlers(app)

    app.include_router(generation_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Basic health check endpoint."""
        state = request.app.state
        service = state.generation_service
        return {
            "status": "healthy" if service is not None else "starting",
            "timestamp": time.time(),
            "uptime": time.time() - getattr(state, "startup_time", time.time()),
            "request_count": getattr(state, "request_count", 0),
            "version": API_VERSION
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Marketplace Generation API",
            "version": API_VERSION,
            "endpoints": {
                "generate_listing": "/api/generate-listing",
                "generate_response": "/api/generate-response",
                "generation_health": "/api/generate/health",
                "health": "/health"
            },
            "documentation": "/docs" if settings.debug else None
        }

    return app


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_application(settings), host=settings.host, port=settings.port)


# Create the application instance
app = create_application()
