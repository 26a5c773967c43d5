from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tutorly.config import settings
from tutorly.core.models.user import Role
from tutorly.core.repositories.implementations.supabase.user_repository import (
    SupabaseUserRepository,
)
from tutorly.core.schemas.auth import AuthUser
from tutorly.core.services.user_service import UserService
from tutorly.db.base import create_request_supabase_client, get_supabase_admin_client
from tutorly.utils.logging import get_logger

logger = get_logger(__name__)

# Use auto_error=False to handle missing tokens gracefully
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from tutorly.core.repositories.user_repository import UserRepository


# In-memory rate limiting
_login_attempts: dict[str, list[float]] = {}


def _prune_attempts(window_start: float) -> None:
    """Drop expired attempts, and identifiers left with none."""
    for key in list(_login_attempts):
        recent = [attempt for attempt in _login_attempts[key] if attempt > window_start]
        if recent:
            _login_attempts[key] = recent
        else:
            del _login_attempts[key]


def _is_rate_limited(identifier: str) -> bool:
    """Check if the identifier is rate limited."""
    if not settings.enable_rate_limiting:
        return False
    now = time.time()
    _prune_attempts(now - settings.login_attempt_window)
    attempts = _login_attempts.get(identifier, [])
    if len(attempts) >= settings.max_login_attempts:
        return True
    _login_attempts.setdefault(identifier, []).append(now)
    return False


def reset_rate_limits() -> None:
    """Forget all recorded attempts."""
    _login_attempts.clear()


async def _run_blocking(func):
    """Run blocking functions in a thread pool."""
    import asyncio
    return await asyncio.to_thread(func)


def rate_limit_by_ip(request: Request, operation: str = "default") -> None:
    """Rate limiting helper used by the unauthenticated user endpoints.

    Args:
        request: FastAPI request object
        operation: Operation identifier for rate limiting (e.g., "check-role", "add-user")

    Raises:
        HTTPException: If rate limit is exceeded
    """
    client_ip = request.client.host if request.client else "unknown"
    identifier = f"{operation}:{client_ip}"
    if _is_rate_limited(identifier):
        logger.warning(f"Rate limited {operation} attempt", extra={"ip": client_ip})

        now = time.time()
        window_seconds = settings.login_attempt_window
        limit = settings.max_login_attempts

        attempts = _login_attempts.get(identifier, [])
        earliest_attempt = min(attempts) if attempts else now
        seconds_until_reset = max(1, math.ceil(window_seconds - (now - earliest_attempt)))

        headers = {
            "Retry-After": str(seconds_until_reset),
            "RateLimit-Limit": str(limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(seconds_until_reset),
        }

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many {operation} attempts. Please try again later.",
            headers=headers,
        )


def get_admin_client() -> Client:
    """Profiles are read server-side with the service role; ownership is checked in the endpoints."""
    return get_supabase_admin_client()


def get_user_repository(client: Client = Depends(get_admin_client)) -> UserRepository:
    """Get a request-scoped user repository instance."""
    return SupabaseUserRepository(client)


def get_user_service(repo: UserRepository = Depends(get_user_repository)) -> UserService:
    """Get a request-scoped user service instance."""
    return UserService(repo)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Validate the bearer JWT via Supabase and return the authenticated identity."""
    if not credentials:
        raise _unauthorized("No authorization token provided")
    jwt = credentials.credentials
    if not jwt or len(jwt.split(".")) != 3:
        raise _unauthorized("Invalid token format")
    supabase = create_request_supabase_client(jwt)
    try:
        resp = await _run_blocking(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
                "jwt_length": len(jwt),
            }
        )
        if "invalid" in error_msg or "expired" in error_msg:
            raise _unauthorized("Invalid or expired token") from err
        raise _unauthorized("Authentication failed") from err
    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None) if user else None
    if not user_id:
        raise _unauthorized("Invalid user data")
    return AuthUser(
        uid=str(user_id),
        email=getattr(user, "email", None) or "",
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
    )


async def require_admin(
    current_user: AuthUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> AuthUser:
    """Allow only callers whose profile carries the Admin role."""
    profile = await service.get_profile(current_user.uid)
    if profile is None or profile.role is not Role.ADMIN:
        logger.warning("Admin endpoint denied", extra={"uid": current_user.uid})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Only Admins can access this route.",
        )
    return current_user
