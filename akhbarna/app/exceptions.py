"""Custom exceptions for the portal backend."""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from akhbarna.app.middleware.rate_limit.models import RateLimitDecision


class AkhbarnaException(Exception):
    """Base class for application exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Internal error"):
        self.message = message
        super().__init__(message)


class RateLimitExceededError(AkhbarnaException):
    """Raised when a rate limit policy rejects a request.

    Carries the limiter decision so the exception handler can render the
    429 body and the X-RateLimit-* / Retry-After headers.
    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(
        self,
        decision: "RateLimitDecision",
        policy: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.decision = decision
        self.policy = policy
        super().__init__(message or "Too many requests, please try again later.")


class UnknownPolicyError(AkhbarnaException, KeyError):
    """Raised when a rate limit policy name is not in the preset table."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown rate limit policy: {name!r}")

    def __str__(self) -> str:
        return self.message
