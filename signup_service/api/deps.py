import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, Request

from signup_service.core.config import Settings, get_settings
from signup_service.core.errors import RateLimitError, UnauthorizedError
from signup_service.core.rate_limiter import RequestRateLimiters, SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

GENERAL_LIMIT_MESSAGE = "Zu viele Anfragen. Bitte warte 15 Minuten."
REGISTRATION_LIMIT_MESSAGE = "Zu viele Anmeldungen. Bitte warte eine Stunde."


def get_client_ip(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Address the rate limiters key on.

    The socket peer, unless TRUST_PROXY_HEADERS is on. Then the right-most
    X-Forwarded-For hop is used: it is the one our own proxy appended, while
    everything left of it is whatever the client sent.
    """
    if settings.TRUST_PROXY_HEADERS:
        hops = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",")]
        hops = [hop for hop in hops if hop]
        if hops:
            return hops[-1]
        real_ip = request.headers.get("x-real-ip", "").strip()
        if real_ip:
            return real_ip
    return request.client.host if request.client else "unknown"


def get_forwarded_ip(request: Request) -> str:
    """
    Originating address as reported by the client side, for the provenance
    column only. Never use it for limiting.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first = forwarded_for.split(",")[0].strip()
    if first:
        return first
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def get_user_agent(user_agent: Optional[str] = Header(None)) -> str:
    return user_agent or ""


def get_rate_limiters(request: Request) -> RequestRateLimiters:
    return request.app.state.rate_limiters


def _enforce(limiter: SlidingWindowRateLimiter, client_ip: str, message: str) -> None:
    if not limiter.is_allowed_sync(client_ip):
        retry_after = int(limiter.get_wait_time(client_ip)) + 1
        logger.warning(
            f"Rate limit '{limiter.name}' exceeded for {client_ip}",
            extra={"client_ip": client_ip, "retry_after": retry_after},
        )
        raise RateLimitError(message=message, retry_after=retry_after)


def enforce_general_rate_limit(
    client_ip: str = Depends(get_client_ip),
    limiters: RequestRateLimiters = Depends(get_rate_limiters),
) -> None:
    _enforce(limiters.general, client_ip, GENERAL_LIMIT_MESSAGE)


def enforce_registration_rate_limit(
    client_ip: str = Depends(get_client_ip),
    limiters: RequestRateLimiters = Depends(get_rate_limiters),
) -> None:
    _enforce(limiters.registration, client_ip, REGISTRATION_LIMIT_MESSAGE)


def require_admin_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Static bearer token gate for the participant listing.

    A no-op when ADMIN_AUTH_TOKEN is not configured.
    """
    expected = settings.ADMIN_AUTH_TOKEN
    if not expected:
        return
    if not authorization or not secrets.compare_digest(
        authorization.encode("utf-8"), f"Bearer {expected}".encode("utf-8")
    ):
        raise UnauthorizedError()
