"""Middleware applying one rate limit policy to a group of paths."""

from typing import Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from akhbarna.app.core.config import settings
from akhbarna.app.middleware.rate_limit.backends import RateLimitBackend
from akhbarna.app.middleware.rate_limit.dependencies import get_rate_limit_store
from akhbarna.app.middleware.rate_limit.limiter import RateLimiter
from akhbarna.app.middleware.rate_limit.models import RateLimitPolicy
from akhbarna.app.middleware.rate_limit.policies import API
from akhbarna.app.middleware.rate_limit.responses import (
    apply_rate_limit_headers,
    build_rate_limit_response,
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce a rate limit policy on matching requests.

    Requests whose path starts with one of ``path_prefixes`` (and is not in
    ``exempt_paths``) are checked against ``policy``. Rejected requests get
    the 429 response here and never reach the route.
    """

    def __init__(
        self,
        app,
        policy: RateLimitPolicy = API,
        store: Optional[RateLimitBackend] = None,
        path_prefixes: Iterable[str] = ("/api/",),
        exempt_paths: Iterable[str] = (),
    ):
        """Initialize the middleware.

        Args:
            app: ASGI application
            policy: Policy applied to matching requests
            store: Store to count in; resolved from app.state when omitted
            path_prefixes: Paths the policy applies to
            exempt_paths: Exact paths skipped even when a prefix matches
        """
        super().__init__(app)
        self.policy = policy
        self._store = store
        self.path_prefixes = tuple(path_prefixes)
        self.exempt_paths = frozenset(exempt_paths)

    def _applies_to(self, path: str) -> bool:
        if path in self.exempt_paths:
            return False
        return path.startswith(self.path_prefixes)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        if not settings.rate_limit_enabled or not self._applies_to(request.url.path):
            return await call_next(request)

        store = self._store if self._store is not None else get_rate_limit_store(request)
        decision = RateLimiter(self.policy, store).check(request)

        if not decision.admitted:
            return build_rate_limit_response(decision, self.policy.message)

        response = await call_next(request)
        apply_rate_limit_headers(response, decision)
        return response
