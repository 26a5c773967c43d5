"""
Session context: identity events, profile loading and the single navigation
that follows each settled transition.
"""
from __future__ import annotations

import asyncio

import pytest

from tutorly.client.guards import Outcome
from tutorly.client.identity import Identity
from tutorly.client.profile_fetcher import ProfileFetcher
from tutorly.client.routing import Router
from tutorly.client.session import Session, SessionContext, SessionState

from utils.fakes import FakeIdentityProvider, ProfileServer, profile_payload

pytestmark = pytest.mark.anyio


class RecordingRouter(Router):
    def __init__(self) -> None:
        super().__init__()
        self.navigations: list[str] = []

    def navigate(self, path, session):
        self.navigations.append(path)
        return super().navigate(path, session)


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def server() -> ProfileServer:
    return ProfileServer()


@pytest.fixture
def router() -> RecordingRouter:
    return RecordingRouter()


@pytest.fixture
async def context(provider, server, router):
    http = server.client()
    ctx = SessionContext(provider, ProfileFetcher(http), router)
    ctx.start()
    yield ctx
    ctx.stop()
    await http.aclose()


def _identity(uid: str = "u-1") -> Identity:
    return Identity(uid=uid, email=f"{uid}@example.com", email_verified=True)


async def test_initial_snapshot_is_loading(context):
    assert context.session == Session()
    assert context.state is SessionState.AUTHENTICATING


@pytest.mark.parametrize(
    ("role", "landing"),
    [("Student", "/studentprofile"), ("Individual", "/tutorprofile"), ("Mass", "/tutorprofile"), ("Admin", "/admin")],
)
async def test_sign_in_lands_on_role_page(context, provider, server, router, role, landing):
    server.profiles["u-1"] = profile_payload("u-1", role=role)

    await provider.fire(_identity())

    assert context.state is SessionState.REGISTERED
    assert context.session.profile.role.value == role
    assert router.navigations == [landing]
    assert router.location == landing
    assert router.view.outcome is Outcome.RENDER


async def test_profile_request_carries_identity_token(context, provider, server):
    server.profiles["u-1"] = profile_payload("u-1")

    await provider.fire(_identity())

    assert server.requests[0].headers["Authorization"] == "Bearer header.u-1.signature"


async def test_missing_profile_keeps_identity_and_goes_to_auth(context, provider, router):
    await provider.fire(_identity())

    assert context.state is SessionState.UNREGISTERED
    assert context.session.identity == _identity()
    assert context.session.profile is None
    assert router.navigations == ["/auth"]


async def test_fetch_failure_clears_session(context, provider, server, router):
    server.statuses["u-1"] = 500

    await provider.fire(_identity())

    assert context.session == Session(loading=False)
    assert context.state is SessionState.ANONYMOUS
    assert router.navigations == ["/auth"]


async def test_token_failure_clears_session(context, provider, server, router):
    server.profiles["u-1"] = profile_payload("u-1")
    provider.fail_token = True

    await provider.fire(_identity())

    assert context.state is SessionState.ANONYMOUS
    assert server.requests == []
    assert router.navigations == ["/auth"]


async def test_unexpected_provider_error_still_settles(context, provider, server, router):
    server.profiles["u-1"] = profile_payload("u-1")
    provider.token_error = RuntimeError("adapter bug")

    await provider.fire(_identity())

    assert context.session == Session(loading=False)
    assert router.navigations == ["/auth"]


async def test_signed_out_event_goes_to_auth(context, provider, router):
    await provider.fire(None)

    assert context.state is SessionState.ANONYMOUS
    assert router.navigations == ["/auth"]


async def test_loading_is_published_before_profile_arrives(context, provider, server):
    server.profiles["u-1"] = profile_payload("u-1")
    seen: list[SessionState] = []
    context.subscribe(lambda session: seen.append(session.state))

    await provider.fire(_identity())

    assert seen == [SessionState.AUTHENTICATING, SessionState.REGISTERED]


async def test_guarded_page_waits_while_loading(context, provider, server, router):
    server.profiles["u-1"] = profile_payload("u-1", role="Individual")
    server.gates["u-1"] = asyncio.Event()
    context.navigate("/mycourses")

    task = asyncio.create_task(provider.fire(_identity()))
    await asyncio.sleep(0)
    while not server.requests:
        await asyncio.sleep(0)

    assert context.session.loading is True
    assert router.location == "/mycourses"
    assert router.view.outcome is Outcome.LOADING

    server.gates["u-1"].set()
    await task

    assert router.location == "/tutorprofile"


async def test_stale_profile_response_is_discarded(context, provider, server, router):
    server.profiles["old"] = profile_payload("old", role="Admin")
    server.profiles["new"] = profile_payload("new", role="Student")
    server.gates["old"] = asyncio.Event()

    first = asyncio.create_task(provider.fire(_identity("old")))
    while not server.requests:
        await asyncio.sleep(0)

    await provider.fire(_identity("new"))
    server.gates["old"].set()
    await first

    assert context.session.identity.uid == "new"
    assert context.session.profile.role.value == "Student"
    assert router.location == "/studentprofile"
    assert "/admin" not in router.navigations


async def test_logout_navigates_once(context, provider, server, router):
    server.profiles["u-1"] = profile_payload("u-1")
    await provider.fire(_identity())
    router.navigations.clear()

    await context.logout()

    assert provider.sign_out_calls == 1
    assert context.state is SessionState.ANONYMOUS
    assert router.navigations == ["/auth"]


async def test_logout_when_provider_fails_still_clears(context, provider, server, router):
    server.profiles["u-1"] = profile_payload("u-1")
    await provider.fire(_identity())
    provider.fail_sign_out = True
    router.navigations.clear()

    await context.logout()

    assert context.session == Session(loading=False)
    assert router.location == "/auth"
    assert router.navigations == ["/auth"]


async def test_stop_unsubscribes(context, provider, router):
    context.stop()

    await provider.fire(None)

    assert context.state is SessionState.AUTHENTICATING
    assert router.navigations == []


async def test_student_sign_in_scenario(context, provider, server, router):
    server.profiles["u-alex"] = profile_payload("u-alex", role="Student", name="Alex")

    await provider.fire(_identity("u-alex"))

    session = context.session
    assert session.identity is not None
    assert session.profile.name == "Alex"
    assert session.loading is False
    assert router.location == "/studentprofile"
