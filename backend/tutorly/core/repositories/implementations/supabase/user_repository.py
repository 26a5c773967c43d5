from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tutorly.config import settings
from tutorly.core.models.user import Role, TutorApplication, TutorRecord, User
from tutorly.core.repositories.user_repository import UserRepository
from tutorly.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from supabase import Client


class SupabaseUserRepository(UserRepository):
    """Supabase implementation of the UserRepository.

    Uses Supabase's PostgREST client. Assumes a users table with columns
    matching the `User` model, a candidates table matching `TutorApplication`
    and a tutors table with `user_id`, `role` and `status`.
    """

    def __init__(
        self,
        client: Client,
        *,
        users_table: str | None = None,
        candidates_table: str | None = None,
        tutors_table: str | None = None,
    ) -> None:
        self._client: Client = client
        self._users = users_table or settings.users_table
        self._candidates = candidates_table or settings.candidates_table
        self._tutors = tutors_table or settings.tutors_table

    async def get_by_uid(self, uid: str) -> User | None:
        resp = await self._run(
            lambda: self._client.table(self._users)
            .select("*")
            .eq("uid", uid)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_user(items[0])

    async def get_by_email(self, email: str) -> User | None:
        resp = await self._run(
            lambda: self._client.table(self._users)
            .select("*")
            .eq("email", email.strip().lower())
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_user(items[0])

    async def upsert(self, user: User) -> User:
        row = self._user_to_row(user)
        resp = await self._run(
            lambda: self._client.table(self._users)
            .upsert(row, on_conflict="uid")
            .execute()
        )
        data = self._first(resp.data)
        if not data:
            logger.warning("Upsert returned no row", extra={"uid": user.uid})
            return user
        return self._row_to_user(data)

    async def list(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
        role: Role | None = None,
    ) -> Sequence[User]:
        def _query():
            q = self._client.table(self._users).select("*")
            if role is not None:
                q = q.eq("role", role.value)
            q = q.order("created_at", desc=True)
            if limit is not None:
                q = q.range(offset, offset + limit - 1)
            elif offset:
                q = q.offset(offset)
            return q.execute()

        resp = await self._run(_query)
        items = resp.data or []
        return [self._row_to_user(i) for i in items]

    async def get_tutor_record(self, user_id: UUID, role: Role) -> TutorRecord | None:
        resp = await self._run(
            lambda: self._client.table(self._tutors)
            .select("user_id, role, status")
            .eq("user_id", str(user_id))
            .eq("role", role.value)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        row = dict(items[0])
        if row.get("status") is None:
            row["status"] = "active"
        return TutorRecord.model_validate(row)

    async def get_application(self, email: str, role: Role) -> TutorApplication | None:
        resp = await self._run(
            lambda: self._client.table(self._candidates)
            .select("*")
            .eq("email", email.strip().lower())
            .eq("role", role.value)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_application(items[0])

    async def save_application(self, application: TutorApplication) -> TutorApplication:
        row = self._application_to_row(application)
        resp = await self._run(
            lambda: self._client.table(self._candidates)
            .upsert(row, on_conflict="id")
            .execute()
        )
        data = self._first(resp.data)
        if not data:
            return application
        return self._row_to_application(data)

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        import asyncio
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _row_to_user(row: dict[str, Any]) -> User:
        normalized = {k: v for k, v in row.items() if k in User.model_fields}
        # Nullable text columns map to empty strings on the model
        for field in ("photo_url", "bio"):
            if normalized.get(field) is None:
                normalized[field] = ""
        return User.model_validate(normalized)

    @staticmethod
    def _user_to_row(user: User) -> dict[str, Any]:
        data = user.model_dump(mode="json")
        # updated_at is maintained by a table trigger
        data.pop("updated_at", None)
        return data

    @staticmethod
    def _row_to_application(row: dict[str, Any]) -> TutorApplication:
        normalized = {k: v for k, v in row.items() if k in TutorApplication.model_fields}
        for field in ("subjects", "titles", "qualifications", "certificate_urls"):
            if normalized.get(field) is None:
                normalized[field] = []
        return TutorApplication.model_validate(normalized)

    @staticmethod
    def _application_to_row(application: TutorApplication) -> dict[str, Any]:
        data = application.model_dump(mode="json")
        data.pop("updated_at", None)
        return data
