"""Rate limiting middleware using SlowAPI."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from mediaboard.config import get_settings

settings = get_settings()


def get_api_key_or_ip(request: Request) -> str:
    """
    Get rate limit key from API key or IP address.

    Uses API key if authenticated, falls back to IP address.
    """
    # Try to get API key from request state (set by auth dependency)
    if hasattr(request.state, "api_key") and request.state.api_key:
        return f"key:{request.state.api_key.id}"

    # Fall back to IP address
    return f"ip:{get_remote_address(request)}"


# Create limiter with Redis storage
limiter = Limiter(
    key_func=get_api_key_or_ip,
    storage_uri=settings.redis_url,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)


def rate_limit_uploads():
    """Rate limit for endpoints that open uploads (sessions, presigned targets)."""
    return limiter.limit(
        f"{settings.rate_limit_per_minute}/minute",
        key_func=get_api_key_or_ip,
    )
