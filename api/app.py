"""FastAPI application setup with security middleware."""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import health as health_routes
from api.routes import relay as relay_routes
from clients.openai_client import openai_client
from core.config import settings
from core.exceptions import ConfigurationError, RateLimitExceededError, RelayError
from core.rate_limit import purge_expired_periodically

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.value,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logging()
    print(f"🚀 Starting {settings.app_name} v{settings.version}")
    if settings.shared_secret:
        print("🔒 Shared secret configured")
    else:
        print("⚠️ SHARED_SECRET not set, relay requests will fail")

    purge_task = asyncio.create_task(purge_expired_periodically())

    yield

    # Shutdown
    purge_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await purge_task

    try:
        await openai_client.close()
    except Exception as e:
        print(f"⚠️ Error closing OpenAI client: {e}")

    print("🛑 Application shutdown complete")


def _error_response(
    request: Request,
    status_code: int,
    content: dict,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={**content, "request_id": getattr(request.state, "request_id", None)},
        headers=headers,
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.app_name,
        description="Authenticated chat relay between the mobile app and OpenAI",
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Security Headers Middleware
    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add security headers to responses."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response

    # Request ID and timing middleware
    @app.middleware("http")
    async def request_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add request ID and timing."""
        start_time = time.time()

        request_id = f"{int(start_time * 1000000)}"
        request.state.request_id = request_id

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        # Set by the rate limit dependency
        if hasattr(request.state, "rate_limit_remaining"):
            response.headers["X-RateLimit-Remaining"] = str(
                request.state.rate_limit_remaining
            )
            response.headers["X-RateLimit-Limit"] = str(request.state.rate_limit_limit)
            response.headers["X-RateLimit-Reset"] = str(
                int(time.time()) + request.state.rate_limit_window
            )

        return response

    # Trusted Host Middleware (security)
    if settings.allowed_hosts != ["*"]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
        expose_headers=["X-Request-ID", "X-Process-Time", "X-RateLimit-Remaining"],
    )

    # Global exception handlers
    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        """Render relay errors as {"error": ...} bodies."""
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.reset_in)}
        elif isinstance(exc, ConfigurationError):
            logger.error(f"Configuration error: {exc.reason}")
        elif exc.status_code >= 500:
            logger.error(f"Relay error {exc.status_code}: {exc.message}")
        else:
            logger.info(f"Rejected request with {exc.status_code}: {exc.message}")

        return _error_response(request, exc.status_code, exc.to_content(), headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle routing errors (404, 405) in the same shape."""
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = "Method not allowed"
        else:
            message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return _error_response(
            request, exc.status_code, {"error": message}, getattr(exc, "headers", None)
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle internal server errors."""
        logger.exception(f"Proxy error: {exc}")
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"error": "Internal server error"},
        )

    # Include routers
    app.include_router(health_routes.router, prefix="/api", tags=["Health"])
    app.include_router(relay_routes.router, prefix="/api", tags=["Relay"])

    return app


# Create the app instance
app = create_app()
