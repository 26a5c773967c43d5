from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from tutorly.core.models.user import Role, TutorApplication, TutorRecord, User


class UserRepository(ABC):
    """Abstract repository interface for user profiles and tutor standing.

    Contract used by services and dependency injection. Implementations should
    perform I/O (database, network) and therefore expose async methods.
    """

    @abstractmethod
    async def get_by_uid(self, uid: str) -> User | None:  # pragma: no cover - interface only
        """Fetch a profile by identity provider uid or return None."""

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None:  # pragma: no cover
        """Fetch a profile by (lower-cased) email or return None."""

    @abstractmethod
    async def upsert(self, user: User) -> User:  # pragma: no cover
        """Insert the profile or update the existing row with the same uid."""

    @abstractmethod
    async def list(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
        role: Role | None = None,
    ) -> Sequence[User]:  # pragma: no cover
        """Return profiles ordered by creation time descending.

        Args:
            limit: Maximum number of profiles to return (None = no limit)
            offset: Number of profiles to skip
            role: Optional role filter
        """

    @abstractmethod
    async def get_tutor_record(self, user_id: UUID, role: Role) -> TutorRecord | None:  # pragma: no cover
        """Return the approved tutor account for a user, if any."""

    @abstractmethod
    async def get_application(self, email: str, role: Role) -> TutorApplication | None:  # pragma: no cover
        """Return the tutor application submitted with this email and role."""

    @abstractmethod
    async def save_application(self, application: TutorApplication) -> TutorApplication:  # pragma: no cover
        """Insert or replace a tutor application (keyed by id)."""
