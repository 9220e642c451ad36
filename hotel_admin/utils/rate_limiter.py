"""
Rate Limiter Configuration

In-memory slowapi limiter keyed on the real client address.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import settings


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind reverse proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["100/minute"],
    enabled=settings.rate_limit_enabled
)


RATE_LIMITS = {
    "booking_create": "30/minute",
    "booking_update": "60/minute",
    "booking_delete": "20/minute",
    "search": "60/minute",
    "availability": "120/minute",
}


def get_rate_limit(operation: str) -> str:
    """Get rate limit for a specific operation."""
    return RATE_LIMITS.get(operation, "100/minute")
