from __future__ import annotations

from typing import Any

import httpx

from tutorly.client.errors import BackendRequestError, RoleCheckFailedError
from tutorly.core.models.user import Role
from tutorly.utils.logging import get_logger

logger = get_logger(__name__)


def _error_detail(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            # FastAPI validation errors arrive as a list of dicts
            return str(detail)
    return fallback


class BackendClient:
    """Registration and login pre-check calls against the Tutorly API."""

    def __init__(self, http: httpx.AsyncClient, *, api_prefix: str = "/api") -> None:
        self._http = http
        self._prefix = api_prefix.rstrip("/")

    async def add_user(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST /api/add-user; returns the created profile row."""
        resp = await self._post("/add-user", payload, fallback="Failed to save your profile")
        if resp.status_code >= 300:
            raise BackendRequestError(resp.status_code, _error_detail(resp, "Failed to save your profile"))
        body = resp.json()
        logger.info("Profile registered", extra={"uid": payload.get("firebase_uid")})
        return body.get("user", body)

    async def check_role(self, email: str, role: Role | str) -> None:
        """POST /api/check-role; raises RoleCheckFailedError unless the role matches."""
        role_value = role.value if isinstance(role, Role) else role
        resp = await self._post(
            "/check-role",
            {"email": email, "role": role_value},
            fallback="Invalid role for this account",
        )
        if resp.status_code >= 300:
            raise RoleCheckFailedError(resp.status_code, _error_detail(resp, "Invalid role for this account"))

    async def _post(self, path: str, payload: dict[str, Any], *, fallback: str) -> httpx.Response:
        try:
            return await self._http.post(f"{self._prefix}{path}", json=payload)
        except httpx.HTTPError as err:
            logger.warning("Backend request failed", extra={"path": path, "error_type": type(err).__name__})
            raise BackendRequestError(0, fallback) from err
