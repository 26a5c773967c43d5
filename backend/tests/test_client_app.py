from __future__ import annotations

import pytest

from tutorly.client import Outcome, SessionState, TutorlyClient
from tutorly.client.identity import Identity

from utils.fakes import FakeIdentityProvider, ProfileServer, profile_payload

pytestmark = pytest.mark.anyio


async def test_entering_restores_existing_session():
    provider = FakeIdentityProvider()
    provider.restored = Identity(uid="u-1", email="u-1@example.com", email_verified=True)
    server = ProfileServer()
    server.profiles["u-1"] = profile_payload("u-1", role="Mass")

    async with server.client() as http:
        async with TutorlyClient(provider=provider, http=http) as client:
            assert client.context.state is SessionState.REGISTERED
            assert client.router.location == "/tutorprofile"

            denied = client.navigate("/studentprofile")
            assert denied.outcome is Outcome.RENDER
            assert client.router.location == "/auth"

            await client.logout()
            assert client.context.state is SessionState.ANONYMOUS

        assert not http.is_closed


async def test_entering_without_session_goes_to_auth():
    provider = FakeIdentityProvider()
    server = ProfileServer()

    async with server.client() as http:
        async with TutorlyClient(provider=provider, http=http) as client:
            assert client.context.state is SessionState.ANONYMOUS
            assert client.router.location == "/auth"
            assert server.requests == []
