"""Translate limiter decisions into HTTP responses and headers."""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from starlette.responses import Response

from akhbarna.app.middleware.rate_limit.models import RateLimitDecision

DEFAULT_MESSAGE = "Too many requests, please try again later."


def rate_limit_headers(decision: RateLimitDecision) -> Dict[str, str]:
    """X-RateLimit-* headers, plus Retry-After when the decision carries one."""
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at),
    }
    if decision.retry_after:
        headers["Retry-After"] = str(decision.retry_after)
    return headers


def rate_limit_payload(
    decision: RateLimitDecision,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "error": "Rate limit exceeded",
        "message": message or DEFAULT_MESSAGE,
        "limit": decision.limit,
        "remaining": decision.remaining,
        "resetTime": decision.reset_at,
        "retryAfter": decision.retry_after,
    }


def build_rate_limit_response(
    decision: RateLimitDecision,
    message: Optional[str] = None,
) -> JSONResponse:
    """Build the 429 response for a rejected request.

    Args:
        decision: Rejection returned by the limiter
        message: Policy-specific text for the client

    Returns:
        JSONResponse with status 429 and rate limit headers
    """
    return JSONResponse(
        status_code=429,
        content=rate_limit_payload(decision, message),
        headers=rate_limit_headers(decision),
    )


def apply_rate_limit_headers(response: Response, decision: RateLimitDecision) -> None:
    """Attach quota headers to a successful response."""
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    response.headers["X-RateLimit-Reset"] = str(decision.reset_at)
