from __future__ import annotations

import httpx
import pytest

from tutorly.client.errors import ProfileFetchError, ProfileNotFoundError
from tutorly.client.profile_fetcher import ProfileFetcher
from tutorly.core.models.user import Role, TutorStatus

from utils.fakes import profile_payload

pytestmark = pytest.mark.anyio


def _fetcher(handler) -> ProfileFetcher:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend")
    return ProfileFetcher(http)


async def test_fetch_sends_bearer_and_parses_profile():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=profile_payload("u-1", role="individual", tutor_status="pending", can_access_dashboard=False,
                                 extra_field="ignored"),
        )

    profile = await _fetcher(handler).fetch("u-1", "tok")

    assert seen[0].url.path == "/api/user/u-1"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert profile.role is Role.INDIVIDUAL
    assert profile.tutor_status is TutorStatus.PENDING
    assert profile.can_access_dashboard is False


async def test_uid_is_url_quoted():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        return httpx.Response(200, json=profile_payload("a/b"))

    await _fetcher(handler).fetch("a/b", "tok")

    assert seen == ["/api/user/a%2Fb"]


async def test_404_means_not_registered():
    fetcher = _fetcher(lambda request: httpx.Response(404, json={"detail": "User not found"}))

    with pytest.raises(ProfileNotFoundError) as excinfo:
        await fetcher.fetch("u-1", "tok")

    assert excinfo.value.status_code == 404


@pytest.mark.parametrize("status", [401, 403, 500])
async def test_other_statuses_are_fetch_errors(status):
    fetcher = _fetcher(lambda request: httpx.Response(status, json={"detail": "nope"}))

    with pytest.raises(ProfileFetchError) as excinfo:
        await fetcher.fetch("u-1", "tok")

    assert not isinstance(excinfo.value, ProfileNotFoundError)
    assert excinfo.value.status_code == status


async def test_transport_failure_is_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProfileFetchError, match="Could not reach the profile service"):
        await _fetcher(handler).fetch("u-1", "tok")


async def test_malformed_payload_is_fetch_error():
    fetcher = _fetcher(lambda request: httpx.Response(200, json={"uid": "u-1", "role": "wizard"}))

    with pytest.raises(ProfileFetchError, match="Malformed profile payload"):
        await fetcher.fetch("u-1", "tok")
