"""Rate-limit dependency for public registration submissions."""

from __future__ import annotations

from fastapi import Request

from app.core.config import get_settings
from app.core.rate_limit import get_rate_limiter
from app.shared.exceptions import RateLimitException


def client_ip(request: Request, *, trusted_proxy_ips: frozenset[str] | set[str] | tuple[str, ...]) -> str:
    """Peer address, or the first X-Forwarded-For hop when the peer is a trusted proxy."""
    peer = request.client.host if request.client and request.client.host else "unknown"
    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for or peer not in trusted_proxy_ips:
        return peer
    return forwarded_for.split(",")[0].strip() or peer


async def enforce_registration_rate_limit(request: Request) -> None:
    """Reject the request once the client IP exceeds the registration budget."""
    settings = get_settings()
    ip = client_ip(request, trusted_proxy_ips=settings.registration_rate_limit_trusted_proxy_ips)
    decision = await get_rate_limiter().hit(
        f"registration:{ip}",
        limit=settings.registration_rate_limit_requests,
        window_seconds=settings.registration_rate_limit_window_seconds,
    )
    if not decision.allowed:
        raise RateLimitException(
            f"Too many registration attempts. Try again in {decision.retry_after} second(s).",
            {"retry_after": decision.retry_after},
        )
