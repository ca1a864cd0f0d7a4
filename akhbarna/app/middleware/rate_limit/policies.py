"""Named rate limit policies for the portal's endpoints."""

from types import MappingProxyType
from typing import Mapping

from akhbarna.app.exceptions import UnknownPolicyError
from akhbarna.app.middleware.rate_limit.keys import by_ip, by_user
from akhbarna.app.middleware.rate_limit.models import RateLimitPolicy

MINUTE_MS = 60 * 1000

API = RateLimitPolicy(
    name="api",
    window_ms=15 * MINUTE_MS,
    max_requests=100,
    key_generator=by_ip,
)

# Login, registration and password reset
AUTH = RateLimitPolicy(
    name="auth",
    window_ms=15 * MINUTE_MS,
    max_requests=5,
    key_generator=by_ip,
    message="Too many login attempts. Please try again later.",
)

CONTACT = RateLimitPolicy(
    name="contact",
    window_ms=60 * MINUTE_MS,
    max_requests=3,
    key_generator=by_ip,
    message="Too many contact form submissions. Please try again later.",
)

SEARCH = RateLimitPolicy(
    name="search",
    window_ms=5 * MINUTE_MS,
    max_requests=30,
    key_generator=by_ip,
)

# Article views are counted more leniently
VIEWS = RateLimitPolicy(
    name="views",
    window_ms=5 * MINUTE_MS,
    max_requests=50,
    key_generator=by_ip,
)

ADMIN = RateLimitPolicy(
    name="admin",
    window_ms=5 * MINUTE_MS,
    max_requests=200,
    key_generator=by_user,
)

POLICIES: Mapping[str, RateLimitPolicy] = MappingProxyType({
    policy.name: policy
    for policy in (API, AUTH, CONTACT, SEARCH, VIEWS, ADMIN)
})


def get_policy(name: str) -> RateLimitPolicy:
    """Look up a preset policy by name.

    Raises:
        UnknownPolicyError: If no preset has that name
    """
    try:
        return POLICIES[name]
    except KeyError:
        raise UnknownPolicyError(name) from None
