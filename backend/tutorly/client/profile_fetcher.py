from __future__ import annotations

from urllib.parse import quote

import httpx
from pydantic import ValidationError

from tutorly.client.errors import ProfileFetchError, ProfileNotFoundError
from tutorly.core.schemas.profile import Profile
from tutorly.utils.logging import get_logger

logger = get_logger(__name__)


class ProfileFetcher:
    """Translate an identity token into the application profile.

    Always a fresh network call; no retries and no caching.
    """

    def __init__(self, http: httpx.AsyncClient, *, api_prefix: str = "/api") -> None:
        self._http = http
        self._prefix = api_prefix.rstrip("/")

    async def fetch(self, uid: str, token: str) -> Profile:
        """GET /api/user/{uid} with the bearer token.

        Raises:
            ProfileNotFoundError: the backend answered 404 (registration incomplete)
            ProfileFetchError: any other status, transport failure or bad payload
        """
        try:
            resp = await self._http.get(
                f"{self._prefix}/user/{quote(uid, safe='')}",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as err:
            logger.warning("Profile request failed", extra={"uid": uid, "error_type": type(err).__name__})
            raise ProfileFetchError("Could not reach the profile service") from err

        if resp.status_code == httpx.codes.NOT_FOUND:
            logger.info("No profile registered", extra={"uid": uid})
            raise ProfileNotFoundError(uid)
        if resp.status_code != httpx.codes.OK:
            logger.warning("Profile request rejected", extra={"uid": uid, "status": resp.status_code})
            raise ProfileFetchError(
                f"Profile request failed with status {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            return Profile.model_validate(resp.json())
        except (ValueError, ValidationError) as err:
            logger.warning("Malformed profile payload", extra={"uid": uid})
            raise ProfileFetchError("Malformed profile payload", status_code=resp.status_code) from err
