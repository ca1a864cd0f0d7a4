from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from akhbarna.app.core.config import settings
from akhbarna.app.core.logging import get_logger, setup_logging
from akhbarna.app.exceptions import RateLimitExceededError, UnknownPolicyError
from akhbarna.app.middleware.rate_limit import (
    InMemoryRateLimitStore,
    RateLimitBackend,
    RateLimiter,
    apply_rate_limit_headers,
    build_rate_limit_response,
    get_policy,
    get_rate_limit_store,
)
from akhbarna.app.middleware.request_id import RequestIdMiddleware, get_request_id


def create_app(store: Optional[RateLimitBackend] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Rate limit store shared by every route; a fresh in-memory
            store is created when omitted

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    if store is None:
        store = InMemoryRateLimitStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Start the rate limit sweep on startup and stop it on shutdown."""
        await store.start()
        logger.info(
            "Application startup complete",
            extra={
                "rate_limit_enabled": settings.rate_limit_enabled,
                "debug_mode": settings.debug,
            }
        )

        yield

        await store.stop()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Akhbarna API",
        description="The Maghreb Orbit news portal backend",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.rate_limit_store = store

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
        max_age=600,
    )

    # Request ID middleware (outermost, so rejections are logged with an ID)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health check with rate limit store statistics."""
        return {
            "status": "ok",
            "components": {
                "rate_limiter": get_rate_limit_store(request).stats(),
            },
        }

    @app.get("/api/rate-limit/status")
    async def rate_limit_status(request: Request, response: Response, policy: str = "api") -> dict[str, Any]:
        """Report the caller's remaining quota for a policy without consuming it."""
        try:
            resolved = get_policy(policy)
        except UnknownPolicyError as e:
            raise HTTPException(status_code=404, detail=e.message)

        decision = RateLimiter(resolved, get_rate_limit_store(request)).status(request)
        apply_rate_limit_headers(response, decision)
        return {
            "policy": resolved.name,
            "limited": not decision.admitted,
            "limit": decision.limit,
            "remaining": decision.remaining,
            "resetTime": decision.reset_at,
            "retryAfter": decision.retry_after,
        }

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 response."""
        return build_rate_limit_response(exc.decision, exc.message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is logged server-side and never returned to the client.
        Debug mode adds the exception message and type to the response.
        """
        request_id = get_request_id(request)

        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            }
        )

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": str(exc),
                    "exception_type": type(exc).__name__,
                    "request_id": request_id,
                }
            )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "Internal server error",
                "request_id": request_id,
            }
        )

    return app


# Create the application instance
app = create_app()
