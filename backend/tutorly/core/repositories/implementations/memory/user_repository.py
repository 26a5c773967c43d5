"""
In-memory user repository for local development and tests.

Profiles, tutor applications and tutor records live in process memory and are
lost on restart. Replace with the Supabase repository for real deployments.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from tutorly.core.repositories.user_repository import UserRepository

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from tutorly.core.models.user import Role, TutorApplication, TutorRecord, User


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._applications: dict[UUID, TutorApplication] = {}
        self._tutors: dict[tuple[UUID, Role], TutorRecord] = {}

    async def get_by_uid(self, uid: str) -> User | None:
        return self._users.get(uid)

    async def get_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email == wanted:
                return user
        return None

    async def upsert(self, user: User) -> User:
        existing = self._users.get(user.uid)
        if existing is not None:
            user = user.model_copy(update={"id": existing.id, "created_at": existing.created_at})
        self._users[user.uid] = user
        return user

    async def list(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
        role: Role | None = None,
    ) -> Sequence[User]:
        users = [u for u in self._users.values() if role is None or u.role == role]
        users.sort(key=lambda u: u.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return users[offset:end]

    async def get_tutor_record(self, user_id: UUID, role: Role) -> TutorRecord | None:
        return self._tutors.get((user_id, role))

    async def get_application(self, email: str, role: Role) -> TutorApplication | None:
        wanted = email.strip().lower()
        for application in self._applications.values():
            if application.email == wanted and application.role == role:
                return application
        return None

    async def save_application(self, application: TutorApplication) -> TutorApplication:
        self._applications[application.id] = application
        return application

    # Admin-side helpers (approval workflow lives outside this service)
    def add_tutor_record(self, record: TutorRecord) -> None:
        self._tutors[(record.user_id, record.role)] = record
