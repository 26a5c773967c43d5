"""
Pytest configuration for backend tests.

Settings are read at import time, so the Supabase variables get placeholder
values before any `tutorly` module is imported. No test talks to Supabase:
the API runs against the in-memory repository and the session client against
a scripted identity provider.
"""
from __future__ import annotations

import os

os.environ.setdefault("TUTORLY_SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("TUTORLY_SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("TUTORLY_SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport  # noqa: E402

from tutorly.core.repositories.implementations.memory.user_repository import (  # noqa: E402
    InMemoryUserRepository,
)
from tutorly.core.schemas.auth import AuthUser  # noqa: E402
from tutorly.dependencies import get_current_user, get_user_repository, reset_rate_limits  # noqa: E402
from tutorly.main import app  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


class CallerState:
    """Who the API believes is calling; None means no bearer token."""

    def __init__(self) -> None:
        self.user: AuthUser | None = None

    def sign_in(self, uid: str, email: str = "") -> AuthUser:
        self.user = AuthUser(uid=uid, email=email or f"{uid}@example.com", email_verified=True)
        return self.user


@pytest.fixture
def caller() -> CallerState:
    return CallerState()


@pytest.fixture
def api_app(repo, caller):
    from fastapi import HTTPException, status

    async def _current_user() -> AuthUser:
        if caller.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="No authorization token provided",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return caller.user

    app.dependency_overrides[get_user_repository] = lambda: repo
    app.dependency_overrides[get_current_user] = _current_user
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def api_client(api_app):
    async with httpx.AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as client:
        yield client
