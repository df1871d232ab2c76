"""FastAPI application factory and configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waitlist.api.dependencies import get_audit_trail, get_counter_store
from waitlist.api.routes import admin_router, health_router, signup_router
from waitlist.core.config import settings
from waitlist.core.exceptions import GENERIC_INVALID_REQUEST, AppException, RateLimited
from waitlist.services.crypto.codec import SignupCodec


# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def check_startup_configuration() -> None:
    """Log loudly about configuration that weakens the pipeline."""
    codec = SignupCodec(settings.signup_encryption_key)
    if not codec.encrypted:
        logger.warning(
            "signup_encryption_disabled",
            detail="SIGNUP_ENCRYPTION_KEY is not set; signups will be stored as plaintext JSON",
        )
    else:
        try:
            codec.validate_key()
        except ValueError as e:
            logger.error(
                "signup_encryption_key_invalid",
                detail="every signup write will be rejected until the key is fixed",
                error=str(e),
            )

    if not settings.admin_token:
        logger.warning("admin_token_not_configured", detail="admin endpoints will answer 503")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(
        "Starting Waitlist Signup API",
        environment=settings.app_env,
        debug=settings.app_debug,
    )
    check_startup_configuration()

    yield

    # Shutdown
    await get_audit_trail().flush()
    counters = get_counter_store()
    close = getattr(counters, "close", None)
    if close is not None:
        await close()
    logger.info("Shutting down Waitlist Signup API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Waitlist Signup API",
        description="Encrypted, rate-limited waitlist intake with authenticated admin retrieval",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else settings.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Admin-Token"],
    )

    @app.middleware("http")
    async def no_store(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Render application errors with their public message only."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Application exception",
            code=exc.code,
            message=exc.message,
            details=exc.details,
            path=request.url.path,
        )

        content: dict[str, object] = {"error": exc.public_message}
        headers = None
        if isinstance(exc, RateLimited):
            content["retryAfter"] = exc.retry_after
            headers = {"Retry-After": str(exc.retry_after)}

        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Schema failures get one generic message; field detail stays in the log."""
        logger.warning(
            "Request validation failed",
            path=request.url.path,
            fields=[".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": GENERIC_INVALID_REQUEST},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions.

        Runs outside the middleware stack, so it sets ``no-store`` itself.
        """
        logger.error("Unhandled exception", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred"},
            headers={"Cache-Control": "no-store"},
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(signup_router)
    app.include_router(admin_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "Waitlist Signup API",
            "version": "0.1.0",
            "status": "running",
        }

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "waitlist.api.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_development,
    )
