"""Middleware package for the portal backend."""

from akhbarna.app.middleware.rate_limit import RateLimitMiddleware, rate_limit
from akhbarna.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "RateLimitMiddleware",
    "rate_limit",
    "RequestIdMiddleware",
    "get_request_id",
]
