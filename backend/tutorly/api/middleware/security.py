from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from tutorly.config import settings
from tutorly.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.types import ASGIApp

logger = get_logger(__name__)

# Endpoints that take part in sign-in/registration; access is logged
AUDITED_SUFFIXES = ("/add-user", "/check-role", "/users")


class SecurityMiddleware(BaseHTTPMiddleware):
    """Security middleware to add essential security headers."""

    def __init__(self, app: ASGIApp, *, api_prefix: str | None = None):
        super().__init__(app)
        self.api_prefix = (api_prefix if api_prefix is not None else settings.api_prefix).rstrip("/")

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # The SPA talks to this API and to the Supabase project directly
        csp_policy = (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
            "font-src 'self' data:; "
            f"connect-src 'self' {settings.supabase_url.rstrip('/')} https://*.supabase.co; "
            "frame-ancestors 'none';"
        )
        response.headers["Content-Security-Policy"] = csp_policy

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"

        if self._is_audited(request.url.path):
            client_ip = request.client.host if request.client else "unknown"
            user_agent = request.headers.get("user-agent", "unknown")

            logger.info(
                "User endpoint accessed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status": response.status_code,
                    "ip": client_ip,
                    "user_agent": user_agent[:100],
                }
            )

        return response

    def _is_audited(self, path: str) -> bool:
        if not path.startswith(f"{self.api_prefix}/"):
            return False
        rest = path[len(self.api_prefix):]
        return rest.startswith("/user/") or rest.endswith(AUDITED_SUFFIXES)
