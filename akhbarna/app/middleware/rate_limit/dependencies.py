"""FastAPI dependencies that guard routes with a rate limit policy.

Usage:
    @router.post("/api/auth/login", dependencies=[Depends(rate_limit("auth"))])
    async def login(...):
        ...

The dependency runs before the route body. A rejection raises
RateLimitExceededError, which the application renders as a 429, so no
business logic executes for a throttled caller.
"""

from typing import Awaitable, Callable, Optional, Union

from fastapi import Request, Response

from akhbarna.app.core.config import settings
from akhbarna.app.exceptions import RateLimitExceededError
from akhbarna.app.middleware.rate_limit.backends import RateLimitBackend
from akhbarna.app.middleware.rate_limit.limiter import RateLimiter
from akhbarna.app.middleware.rate_limit.models import RateLimitDecision, RateLimitPolicy
from akhbarna.app.middleware.rate_limit.policies import get_policy
from akhbarna.app.middleware.rate_limit.responses import apply_rate_limit_headers


def get_rate_limit_store(request: Request) -> RateLimitBackend:
    """Get the store the application was assembled with.

    Raises:
        RuntimeError: If the application did not set app.state.rate_limit_store
    """
    store = getattr(request.app.state, "rate_limit_store", None)
    if store is None:
        raise RuntimeError("Rate limit store is not configured on app.state")
    return store


def rate_limit(
    policy: Union[str, RateLimitPolicy],
    message: Optional[str] = None,
) -> Callable[[Request, Response], Awaitable[Optional[RateLimitDecision]]]:
    """Create a dependency enforcing ``policy`` on the decorated route.

    Args:
        policy: Preset name or an explicit policy
        message: Overrides the policy's rejection text

    Returns:
        Dependency returning the admission decision (None when rate limiting
        is disabled in settings)
    """
    resolved = get_policy(policy) if isinstance(policy, str) else policy

    async def dependency(request: Request, response: Response) -> Optional[RateLimitDecision]:
        if not settings.rate_limit_enabled:
            return None

        limiter = RateLimiter(resolved, get_rate_limit_store(request))
        decision = limiter.check(request)
        if not decision.admitted:
            raise RateLimitExceededError(
                decision,
                policy=resolved.name,
                message=message or resolved.message,
            )

        apply_rate_limit_headers(response, decision)
        return decision

    return dependency
