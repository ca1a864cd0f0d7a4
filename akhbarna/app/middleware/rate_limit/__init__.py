"""Rate limiting for the portal's HTTP endpoints.

Sliding-window admission control kept in process memory, named policies
for the portal's endpoints, and the FastAPI glue (route dependency and
middleware) that turns a rejection into a 429 response.
"""

# Re-export models
from akhbarna.app.middleware.rate_limit.models import (
    KeyGenerator,
    RateLimitDecision,
    RateLimitEntry,
    RateLimitPolicy,
)

# Re-export backends
from akhbarna.app.middleware.rate_limit.backends import (
    InMemoryRateLimitStore,
    RateLimitBackend,
    now_ms,
)

from akhbarna.app.middleware.rate_limit.keys import by_ip, by_ip_endpoint, by_user
from akhbarna.app.middleware.rate_limit.policies import POLICIES, get_policy
from akhbarna.app.middleware.rate_limit.limiter import RateLimiter
from akhbarna.app.middleware.rate_limit.responses import (
    apply_rate_limit_headers,
    build_rate_limit_response,
    rate_limit_headers,
    rate_limit_payload,
)
from akhbarna.app.middleware.rate_limit.dependencies import get_rate_limit_store, rate_limit
from akhbarna.app.middleware.rate_limit.middleware import RateLimitMiddleware

__all__ = [
    # Models
    "KeyGenerator",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimitPolicy",
    # Backends
    "RateLimitBackend",
    "InMemoryRateLimitStore",
    "now_ms",
    # Key generators
    "by_ip",
    "by_user",
    "by_ip_endpoint",
    # Policies
    "POLICIES",
    "get_policy",
    # Main classes
    "RateLimiter",
    "RateLimitMiddleware",
    "rate_limit",
    "get_rate_limit_store",
    # Responses
    "rate_limit_headers",
    "rate_limit_payload",
    "build_rate_limit_response",
    "apply_rate_limit_headers",
]
