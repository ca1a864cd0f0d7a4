"""Key generators that partition rate limit quota among callers.

Header values are trusted verbatim. Behind a proxy that does not overwrite
X-Forwarded-For, a client can choose its own key.
"""

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def by_ip(request: Request) -> str:
    """Client address from proxy headers, or ``"unknown"``.

    Uses the first entry of X-Forwarded-For, then X-Real-IP, then
    X-Remote-Addr.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip

    return (
        request.headers.get("X-Real-IP")
        or request.headers.get("X-Remote-Addr")
        or UNKNOWN_CLIENT
    )


def by_user(request: Request) -> str:
    """Partition by bearer token prefix, falling back to the client address.

    The token is not verified. Any caller presenting a token gets a bucket
    separate from the shared IP bucket; authorization happens elsewhere.
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth[7:]
        return f"user-{token[:10]}"
    return by_ip(request)


def by_ip_endpoint(request: Request) -> str:
    """Client address combined with the request path."""
    return f"{by_ip(request)}-{request.url.path}"
