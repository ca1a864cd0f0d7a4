"""Rate limit storage backends.

The in-memory store keeps, per key, the timestamps of admitted requests that
still fall inside the trailing window. State is process-local: every replica
behind a load balancer enforces its own quota, and nothing survives a
restart.
"""

import asyncio
import bisect
import math
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Dict, Optional

from akhbarna.app.core.config import settings
from akhbarna.app.core.logging import get_logger
from akhbarna.app.middleware.rate_limit.models import RateLimitDecision, RateLimitEntry

logger = get_logger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class RateLimitBackend(ABC):
    """Abstract base class for rate limit backends."""

    @abstractmethod
    def check_and_record(self, key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        """Decide whether a request for ``key`` is admitted, recording it if so.

        Args:
            key: Rate limit key
            window_ms: Length of the trailing window in milliseconds
            max_requests: Quota per window

        Returns:
            RateLimitDecision with admission status and metadata
        """

    @abstractmethod
    def peek(self, key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        """Report quota state for ``key`` without consuming any of it."""

    @abstractmethod
    def cleanup(self, now: Optional[int] = None) -> int:
        """Remove idle entries. Returns the number of keys removed."""

    async def start(self) -> None:
        """Start background maintenance, if the backend needs any."""

    async def stop(self) -> None:
        """Stop background maintenance."""


def _rejection(
    timestamps: Deque[int],
    now: int,
    window_ms: int,
    max_requests: int,
) -> RateLimitDecision:
    # A zero quota rejects with nothing recorded, so the window starts now.
    reset_at = (timestamps[0] if timestamps else now) + window_ms
    return RateLimitDecision(
        admitted=False,
        limit=max_requests,
        remaining=0,
        reset_at=reset_at,
        retry_after=math.ceil((reset_at - now) / 1000),
    )


def _prune(timestamps: Deque[int], cutoff: int) -> None:
    while timestamps and timestamps[0] <= cutoff:
        timestamps.popleft()


class InMemoryRateLimitStore(RateLimitBackend):
    """Sliding-window rate limit store held in process memory.

    The window boundary moves continuously with the clock: a request admitted
    at ``t`` stops counting at ``t + window_ms``. Rejected attempts are never
    recorded, so retrying while throttled costs nothing.

    A background sweep (``start()``/``stop()``) deletes keys once the largest window
    the store has served has passed since their own window ended, which bounds
    memory held for one-off callers.

    Usage:
        store = InMemoryRateLimitStore()
        await store.start()

        decision = store.check_and_record("auth:10.0.0.1", 900_000, 5)
        if not decision.admitted:
            ...  # respond 429, Retry-After: decision.retry_after

        await store.stop()
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        sweep_interval_seconds: Optional[float] = None,
        max_window_ms: Optional[int] = None,
    ):
        """Initialize the store.

        Args:
            clock: Callable returning epoch milliseconds (defaults to wall clock)
            sweep_interval_seconds: Time between background sweeps
            max_window_ms: Lower bound for the window used by the sweep;
                larger windows seen by ``check_and_record`` raise it
        """
        self._clock = clock or now_ms
        self.sweep_interval_seconds = (
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else settings.rate_limit_sweep_interval_seconds
        )
        self._max_window_ms = (
            max_window_ms
            if max_window_ms is not None
            else settings.rate_limit_default_max_window_ms
        )
        self._entries: Dict[str, RateLimitEntry] = {}
        # Guards clock read+prune+append; re-entrant so a clock may call back in.
        self._lock = threading.RLock()
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._started_at = time.monotonic()

    @property
    def max_window_ms(self) -> int:
        return self._max_window_ms

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def check_and_record(self, key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        """Check using the sliding window algorithm and record on admission."""
        with self._lock:
            # Read under the lock so timestamps are recorded in clock order.
            now = self._clock()
            if window_ms > self._max_window_ms:
                self._max_window_ms = window_ms

            entry = self._entries.get(key)
            if entry is None:
                entry = RateLimitEntry(key=key)
                self._entries[key] = entry
            elif now > entry.window_end:
                # Idle for a whole window: nothing left to count.
                entry.request_timestamps.clear()

            timestamps = entry.request_timestamps
            _prune(timestamps, now - window_ms)
            entry.window_end = max(entry.window_end, now + window_ms)

            if len(timestamps) >= max_requests:
                return _rejection(timestamps, now, window_ms, max_requests)

            if timestamps and now < timestamps[-1]:
                # The clock stepped back; _prune relies on oldest-first order.
                bisect.insort(timestamps, now)
            else:
                timestamps.append(now)
            return RateLimitDecision(
                admitted=True,
                limit=max_requests,
                remaining=max_requests - len(timestamps),
                reset_at=timestamps[0] + window_ms,
            )

    def peek(self, key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        """Get current status without recording anything."""
        with self._lock:
            now = self._clock()
            cutoff = now - window_ms
            entry = self._entries.get(key)
            if entry is None or now > entry.window_end:
                active: Deque[int] = deque()
            else:
                active = deque(ts for ts in entry.request_timestamps if ts > cutoff)

        if len(active) >= max_requests:
            return _rejection(active, now, window_ms, max_requests)

        return RateLimitDecision(
            admitted=True,
            limit=max_requests,
            remaining=max(0, max_requests - len(active)),
            reset_at=(active[0] if active else now) + window_ms,
        )

    def cleanup(self, now: Optional[int] = None) -> int:
        """Delete entries idle for at least the largest window past their own.

        An entry goes once ``now - window_end >= max_window_ms``. Since
        ``window_end`` is the last attempt plus that key's window, a key is
        dropped at last attempt + its window + the largest window, which is at
        most ``2 * max_window_ms`` after the last attempt. Deleting later than
        the key's own window never changes admission: a check arriving after
        ``window_end`` resets the key's timestamps anyway.

        The whole scan runs under the lock, so a concurrent admission for a
        key being removed is either fully before or fully after the delete.
        """
        with self._lock:
            now = self._clock() if now is None else now
            horizon = self._max_window_ms
            # window_end is last activity + that key's window (<= horizon).
            expired = [
                key for key, entry in self._entries.items()
                if now - entry.window_end >= horizon
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Rate limit sweep removed {len(expired)} idle keys")
        return len(expired)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, object]:
        """Store statistics for health reporting."""
        return {
            "active_keys": len(self._entries),
            "uptime_seconds": round(time.monotonic() - self._started_at, 3),
            "sweep_running": self.is_running,
        }

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep task.

        Must be called from a running event loop; calling it twice is a no-op.
        """
        if self._task is not None:
            logger.debug("Rate limit sweep already running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_sweeps())
        logger.info(f"Started rate limit sweep (interval: {self.sweep_interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task and drop all entries."""
        if self._task is None:
            return

        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limit sweep did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            self._stop_event = None
            self.clear()
            logger.info("Stopped rate limit sweep")

    async def _run_sweeps(self) -> None:
        """Background task that runs periodic sweeps."""
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.sweep_interval_seconds
                )
            except asyncio.TimeoutError:
                # Interval elapsed without a stop request
                pass
            else:
                break

            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Error during rate limit sweep: {e}")
