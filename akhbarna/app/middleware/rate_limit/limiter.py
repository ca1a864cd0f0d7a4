"""Policy-bound rate limiter."""

from starlette.requests import Request

from akhbarna.app.core.logging import get_log_context, get_logger
from akhbarna.app.middleware.rate_limit.backends import RateLimitBackend
from akhbarna.app.middleware.rate_limit.keys import by_ip
from akhbarna.app.middleware.rate_limit.models import RateLimitDecision, RateLimitPolicy

logger = get_logger(__name__)


class RateLimiter:
    """Applies one policy against a shared store.

    Keys are prefixed with the policy name, so a caller's "auth" attempts and
    "search" queries are counted in separate buckets even though both are
    keyed by client address.
    """

    def __init__(self, policy: RateLimitPolicy, store: RateLimitBackend):
        self.policy = policy
        self.store = store

    def key_for(self, request: Request) -> str:
        return f"{self.policy.name}:{self.policy.key_generator(request)}"

    def check(self, request: Request) -> RateLimitDecision:
        """Consume one unit of quota for the request's caller, if available."""
        key = self.key_for(request)
        decision = self.store.check_and_record(
            key, self.policy.window_ms, self.policy.max_requests
        )
        if not decision.admitted:
            logger.warning(
                f"Rate limit exceeded for policy '{self.policy.name}'",
                extra=get_log_context(
                    request_id=getattr(request.state, "request_id", None),
                    policy=self.policy.name,
                    rate_limit_key=key,
                    client_ip=by_ip(request),
                    path=request.url.path,
                    method=request.method,
                    retry_after=decision.retry_after,
                ),
            )
        return decision

    def status(self, request: Request) -> RateLimitDecision:
        """Quota state for the request's caller; consumes nothing."""
        return self.store.peek(
            self.key_for(request), self.policy.window_ms, self.policy.max_requests
        )
