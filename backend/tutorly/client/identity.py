"""
Identity provider client.

The session client never talks to the auth SDK directly: it subscribes to an
`IdentityProvider`, which emits the signed-in `Identity` (or None after
sign-out) and hands out bearer tokens for backend calls.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import ConfigDict

from tutorly.client.errors import EmailNotVerifiedError, IdentityProviderError
from tutorly.core.models.base import AppBaseModel
from tutorly.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from supabase import Client

    IdentityListener = Callable[["Identity | None"], Awaitable[None]]

logger = get_logger(__name__)


class Identity(AppBaseModel):
    """User record owned by the identity provider."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str
    email_verified: bool = False


class IdentityProvider(ABC):
    """Port for the third-party authentication SDK.

    Listener bookkeeping lives here; adapters implement the provider calls and
    call `_emit` whenever the signed-in identity changes.
    """

    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []
        self._current: Identity | None = None

    @property
    def current_identity(self) -> Identity | None:
        return self._current

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register `listener` for identity changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _emit(self, identity: Identity | None) -> None:
        self._current = identity
        for listener in list(self._listeners):
            await listener(identity)

    async def restore(self) -> Identity | None:
        """Emit the provider's current state once, like an initial auth event."""
        identity = await self._load_current()
        await self._emit(identity)
        return identity

    @abstractmethod
    async def _load_current(self) -> Identity | None:  # pragma: no cover - interface only
        """Return the identity of a session the provider already holds."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Identity:  # pragma: no cover
        """Sign in and emit the identity; unverified emails raise EmailNotVerifiedError."""

    @abstractmethod
    async def create_user(self, email: str, password: str) -> Identity:  # pragma: no cover
        """Create an identity and send its verification email, without signing in."""

    @abstractmethod
    async def sign_out(self) -> None:  # pragma: no cover
        """Sign out and emit None."""

    @abstractmethod
    async def get_id_token(self, *, force_refresh: bool = False) -> str:  # pragma: no cover
        """Return a bearer token for the signed-in identity."""

    @abstractmethod
    async def send_email_verification(self, email: str) -> None:  # pragma: no cover
        """Re-send the sign-up verification email."""

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:  # pragma: no cover
        """Send a password reset email."""


def _provider_message(err: Exception, fallback: str) -> str:
    error_msg = str(err).lower()
    if "invalid login credentials" in error_msg or "invalid email or password" in error_msg:
        return "Invalid email or password"
    if "already registered" in error_msg or "already exists" in error_msg:
        return "An account with this email already exists"
    if "invalid email" in error_msg:
        return "Invalid email address"
    if "weak password" in error_msg or "password should be" in error_msg:
        return "Password is too weak"
    if "signup" in error_msg and "disabled" in error_msg:
        return "Email/password accounts are not enabled"
    if "too many requests" in error_msg or "rate limit" in error_msg:
        return "Too many failed attempts. Please try again later"
    return fallback


class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth (email + password)."""

    def __init__(self, client: Client) -> None:
        super().__init__()
        self.supabase = client

    @staticmethod
    def _to_identity(user: Any) -> Identity:
        return Identity(
            uid=str(user.id),
            email=getattr(user, "email", None) or "",
            email_verified=getattr(user, "email_confirmed_at", None) is not None,
        )

    async def _load_current(self) -> Identity | None:
        try:
            session = await asyncio.to_thread(lambda: self.supabase.auth.get_session())
        except Exception as err:
            logger.warning("Session restore failed", extra={"error": str(err)[:100]})
            return None
        if not session or not getattr(session, "user", None):
            return None
        return self._to_identity(session.user)

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        email = email.lower().strip()
        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_in_with_password({
                    "email": email,
                    "password": password,
                })
            )
        except Exception as err:
            error_msg = str(err).lower()
            logger.warning(
                "Sign in failed",
                extra={
                    "email": email,
                    "error_type": type(err).__name__,
                    "error_summary": error_msg[:100] if error_msg else "Unknown error",
                }
            )
            if "email not confirmed" in error_msg:
                raise EmailNotVerifiedError(email) from err
            raise IdentityProviderError(_provider_message(err, "An error occurred. Please try again")) from err

        if not resp.user or not getattr(resp, "session", None):
            raise IdentityProviderError("Invalid email or password")

        identity = self._to_identity(resp.user)
        if not identity.email_verified:
            # Drop the provider session without telling listeners
            await asyncio.to_thread(lambda: self.supabase.auth.sign_out())
            raise EmailNotVerifiedError(email)

        logger.info("User signed in", extra={"uid": identity.uid})
        await self._emit(identity)
        return identity

    async def create_user(self, email: str, password: str) -> Identity:
        email = email.lower().strip()
        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_up({
                    "email": email,
                    "password": password,
                })
            )
        except Exception as err:
            logger.warning(
                "Sign up failed",
                extra={"email": email, "error_type": type(err).__name__, "error_summary": str(err)[:100]},
            )
            raise IdentityProviderError(_provider_message(err, "Failed to create account. Please try again.")) from err

        if not resp.user:
            raise IdentityProviderError("Failed to create account. Please try again.")
        identity = self._to_identity(resp.user)
        logger.info("Identity created", extra={"uid": identity.uid})
        return identity

    async def sign_out(self) -> None:
        try:
            await asyncio.to_thread(lambda: self.supabase.auth.sign_out())
        except Exception as err:
            logger.warning("Provider sign out failed", extra={"error": str(err)[:100]})
        await self._emit(None)

    async def get_id_token(self, *, force_refresh: bool = False) -> str:
        try:
            if force_refresh:
                resp = await asyncio.to_thread(lambda: self.supabase.auth.refresh_session())
                session = getattr(resp, "session", None)
            else:
                session = await asyncio.to_thread(lambda: self.supabase.auth.get_session())
        except Exception as err:
            raise IdentityProviderError("Your session has expired. Please sign in again.") from err
        token = getattr(session, "access_token", None) if session else None
        if not token:
            raise IdentityProviderError("No authenticated user found")
        return token

    async def send_email_verification(self, email: str) -> None:
        try:
            await asyncio.to_thread(
                lambda: self.supabase.auth.resend({"type": "signup", "email": email.lower().strip()})
            )
        except Exception as err:
            logger.warning("Resend verification failed", extra={"error": str(err)[:100]})
            raise IdentityProviderError(
                _provider_message(err, "Failed to send verification email. Please try again.")
            ) from err

    async def send_password_reset(self, email: str) -> None:
        try:
            await asyncio.to_thread(
                lambda: self.supabase.auth.reset_password_for_email(email.lower().strip())
            )
        except Exception as err:
            logger.warning("Password reset failed", extra={"error": str(err)[:100]})
            raise IdentityProviderError(
                _provider_message(err, "Failed to send password reset email. Please try again.")
            ) from err
