"""Shared fixtures for rate limiting tests."""

import logging
from typing import Callable, Dict, Optional

import pytest
from starlette.requests import Request

from akhbarna.app.middleware.rate_limit import InMemoryRateLimitStore

T0 = 1_700_000_000_000

# Loggers that setup_logging() reconfigures.
CONFIGURED_LOGGERS = ("", "akhbarna", "uvicorn", "uvicorn.access")


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(clock=clock, sweep_interval_seconds=60, max_window_ms=1000)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a bare Starlette request with the given headers and path."""

    def _make(
        headers: Optional[Dict[str, str]] = None,
        path: str = "/api/articles",
        method: str = "GET",
    ) -> Request:
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]
        return Request({
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": raw_headers,
        })

    return _make


def _is_pytest_handler(handler: logging.Handler) -> bool:
    return type(handler).__module__.startswith("_pytest")


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() after each test.

    dictConfig binds its stream handlers to whatever sys.stdout is at the
    time, which under pytest is a per-test capture that gets closed.
    """
    saved = {}
    for name in CONFIGURED_LOGGERS:
        configured = logging.getLogger(name)
        saved[name] = (configured.handlers[:], configured.level, configured.propagate)

    yield

    for name, (handlers, level, propagate) in saved.items():
        configured = logging.getLogger(name)
        for handler in configured.handlers[:]:
            if handler not in handlers and not _is_pytest_handler(handler):
                configured.removeHandler(handler)
                handler.close()
        if name:
            # pytest manages its own root handlers per test phase.
            for handler in handlers:
                if handler not in configured.handlers:
                    configured.addHandler(handler)
        configured.setLevel(level)
        configured.propagate = propagate
