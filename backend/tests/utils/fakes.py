"""Scripted stand-ins for the identity provider and the profile endpoint."""
from __future__ import annotations

import asyncio
from typing import Any

import httpx

from tutorly.client.errors import EmailNotVerifiedError, IdentityProviderError
from tutorly.client.identity import Identity, IdentityProvider


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider.

    Accounts are registered with `add_account`; `fire` emits an identity event
    the way the real SDK does when a session appears or ends.
    """

    def __init__(self) -> None:
        super().__init__()
        self.accounts: dict[str, dict[str, Any]] = {}
        self.restored: Identity | None = None
        self.sign_out_calls = 0
        self.fail_sign_out = False
        self.fail_token = False
        self.token_error: Exception | None = None
        self.emails_sent: list[tuple[str, str]] = []

    def add_account(self, email: str, password: str, *, uid: str | None = None, verified: bool = True) -> Identity:
        identity = Identity(uid=uid or f"uid-{len(self.accounts) + 1}", email=email, email_verified=verified)
        self.accounts[email] = {"password": password, "identity": identity}
        return identity

    async def fire(self, identity: Identity | None) -> None:
        await self._emit(identity)

    async def _load_current(self) -> Identity | None:
        return self.restored

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise IdentityProviderError("Invalid email or password")
        identity = account["identity"]
        if not identity.email_verified:
            raise EmailNotVerifiedError(email)
        await self._emit(identity)
        return identity

    async def create_user(self, email: str, password: str) -> Identity:
        if email in self.accounts:
            raise IdentityProviderError("An account with this email already exists")
        identity = self.add_account(email, password, verified=False)
        self.emails_sent.append(("verify", email))
        return identity

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise IdentityProviderError("network down")
        await self._emit(None)

    async def get_id_token(self, *, force_refresh: bool = False) -> str:
        if self.token_error is not None:
            raise self.token_error
        if self.fail_token or self.current_identity is None:
            raise IdentityProviderError("No authenticated user found")
        return f"header.{self.current_identity.uid}.signature"

    async def send_email_verification(self, email: str) -> None:
        self.emails_sent.append(("verify", email))

    async def send_password_reset(self, email: str) -> None:
        self.emails_sent.append(("reset", email))


def profile_payload(uid: str, role: str = "Student", **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "uid": uid,
        "email": f"{uid}@example.com",
        "name": f"User {uid}",
        "role": role,
        "photo_url": "",
        "bio": "",
        "dob": None,
        "created_at": "2024-01-01T00:00:00Z",
        "tutor_status": "active" if role in {"Individual", "Mass"} else "not_applicable",
        "can_access_dashboard": True,
        "message": "User profile active",
    }
    body.update(overrides)
    return body


class ProfileServer:
    """httpx MockTransport handler serving GET /api/user/{uid}.

    `profiles` maps uid to a JSON body; uids listed in `gates` wait on the
    given event before answering so tests can interleave responses.
    """

    def __init__(self) -> None:
        self.profiles: dict[str, dict[str, Any]] = {}
        self.statuses: dict[str, int] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        uid = request.url.path.rsplit("/", 1)[-1]
        gate = self.gates.get(uid)
        if gate is not None:
            await gate.wait()
        if uid in self.statuses:
            return httpx.Response(self.statuses[uid], json={"detail": "error"})
        if uid not in self.profiles:
            return httpx.Response(404, json={"detail": "User not found"})
        return httpx.Response(200, json=self.profiles[uid])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url="http://backend")
