"""Rate limiting data models.

This module contains dataclasses for rate limit state, policies and results.
All instants are integer milliseconds since the Unix epoch.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Deque, Optional

if TYPE_CHECKING:
    from starlette.requests import Request

KeyGenerator = Callable[["Request"], str]


@dataclass
class RateLimitDecision:
    """Result of a rate limit check."""
    admitted: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: Optional[int] = None


@dataclass
class RateLimitEntry:
    """Per-key sliding window state.

    ``request_timestamps`` holds the admitted requests still inside the
    window, oldest first. ``window_end`` is pushed forward on every attempt;
    once ``now`` passes it the entry is idle.
    """
    key: str
    request_timestamps: Deque[int] = field(default_factory=deque)
    window_end: int = 0


@dataclass(frozen=True)
class RateLimitPolicy:
    """Named quota: at most ``max_requests`` per trailing ``window_ms``."""
    name: str
    window_ms: int
    max_requests: int
    key_generator: KeyGenerator
    message: str = "Too many requests, please try again later."
