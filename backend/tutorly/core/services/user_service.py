from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from tutorly.core.models.user import (
    ApplicationStatus,
    Role,
    TutorAccountStatus,
    TutorApplication,
    TutorStatus,
    User,
)
from tutorly.core.schemas.profile import Profile
from tutorly.utils.logging import get_logger
from tutorly.utils.validation import round_money, validate_individual_tutor_fields

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tutorly.core.repositories.user_repository import UserRepository

logger = get_logger(__name__)

REQUIRED_FIELDS_ERROR = "Missing required fields: firebase_uid, email, name, role"
ADMIN_REGISTRATION_ERROR = "Admin accounts cannot be registered through sign-up"
ROLE_CHANGE_ERROR = "Role cannot be changed"

_STANDING_MESSAGES = {
    TutorStatus.ACTIVE: "Tutor profile active",
    TutorStatus.SUSPENDED: "Your tutor account has been suspended",
    TutorStatus.PENDING: "Your tutor application is pending admin approval",
    TutorStatus.REJECTED: "Your tutor application has been rejected",
    TutorStatus.NOT_REGISTERED: "Please complete your tutor profile registration",
    TutorStatus.NOT_APPLICABLE: "User profile active",
}


class UserService:
    """Service for user profiles, registration and login role checks."""

    def __init__(self, repo: UserRepository) -> None:
        self._repo = repo

    async def get_profile(self, uid: str) -> Profile | None:
        """Return the profile for `uid` annotated with tutor standing, or None."""
        user = await self._repo.get_by_uid(uid)
        if user is None:
            return None
        status = await self._tutor_status(user)
        return Profile(
            uid=user.uid,
            email=user.email,
            name=user.name,
            role=user.role,
            photo_url=user.photo_url,
            bio=user.bio,
            dob=user.dob,
            created_at=user.created_at,
            tutor_status=status,
            can_access_dashboard=status in {TutorStatus.ACTIVE, TutorStatus.NOT_APPLICABLE},
            message=_STANDING_MESSAGES[status],
        )

    async def create_or_update_user(self, dto) -> User:
        """Create a profile on first registration or update it afterwards.

        Tutor roles additionally get a tutor application (pending review) that
        is refreshed on later calls.
        """
        uid = (getattr(dto, "firebase_uid", None) or "").strip()
        email = (getattr(dto, "email", None) or "").strip().lower()
        name = (getattr(dto, "name", None) or "").strip()
        raw_role = getattr(dto, "role", None)

        if not (uid and email and name and raw_role):
            raise ValueError(REQUIRED_FIELDS_ERROR)

        role = Role.parse(raw_role)
        if role is Role.ADMIN:
            raise ValueError(ADMIN_REGISTRATION_ERROR)

        if role is Role.INDIVIDUAL:
            errors = validate_individual_tutor_fields(
                subjects=dto.subjects,
                titles=dto.titles,
                hourly_rate=dto.hourly_rate,
                phone_number=dto.phone_number,
            )
            if errors:
                raise ValueError("; ".join(errors))

        existing = await self._repo.get_by_uid(uid)
        if existing is not None and existing.role != role:
            logger.warning(
                "Role change rejected",
                extra={"uid": uid, "stored_role": existing.role.value, "requested_role": role.value},
            )
            raise ValueError(ROLE_CHANGE_ERROR)

        photo_url = (dto.photo_url or "").strip()
        bio = (dto.bio or "").strip()

        if existing is None:
            user = User(uid=uid, email=email, name=name, role=role, photo_url=photo_url, bio=bio, dob=dto.dob)
        else:
            # Empty values never wipe what the user already has
            user = existing.model_copy(
                update={
                    "email": email,
                    "name": name,
                    "photo_url": photo_url or existing.photo_url,
                    "bio": bio or existing.bio,
                    "dob": dto.dob or existing.dob,
                    "updated_at": datetime.now(UTC),
                }
            )

        saved = await self._repo.upsert(user)
        logger.info(
            "User profile saved",
            extra={"uid": uid, "role": role.value, "new_profile": existing is None},
        )

        if role.is_tutor:
            await self._save_application(saved, dto)
        return saved

    async def check_role(self, email: str, role: str | Role) -> bool:
        """Return True when a profile with this email carries this role."""
        try:
            wanted = Role.parse(role)
        except ValueError:
            return False
        user = await self._repo.get_by_email(email)
        if user is None:
            return False
        return user.role == wanted

    async def list_users(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
        role: str | Role | None = None,
    ) -> Sequence[User]:
        """List profiles, newest first."""
        parsed = Role.parse(role) if role else None
        return await self._repo.list(limit=limit, offset=max(offset, 0), role=parsed)

    async def _tutor_status(self, user: User) -> TutorStatus:
        if not user.role.is_tutor:
            return TutorStatus.NOT_APPLICABLE

        record = await self._repo.get_tutor_record(user.id, user.role)
        if record is not None:
            if record.status is TutorAccountStatus.SUSPENDED:
                return TutorStatus.SUSPENDED
            return TutorStatus.ACTIVE

        application = await self._repo.get_application(user.email, user.role)
        if application is None:
            return TutorStatus.NOT_REGISTERED
        if application.status is ApplicationStatus.PENDING:
            return TutorStatus.PENDING
        if application.status is ApplicationStatus.REJECTED:
            return TutorStatus.REJECTED
        # Approved but the tutor account has not been provisioned yet
        return TutorStatus.NOT_REGISTERED

    async def _save_application(self, user: User, dto) -> TutorApplication:
        individual = user.role is Role.INDIVIDUAL
        fields: dict[str, Any] = {
            "name": user.name,
            "bio": user.bio or None,
            "dob": user.dob,
            "phone_number": dto.phone_number,
            "cv_url": dto.cv_url,
            "certificate_urls": dto.certificate_urls or [],
            "description": dto.description,
            "heading": dto.heading,
            "subjects": dto.subjects or [],
            "titles": (dto.titles or []) if individual else [],
            "hourly_rate": round_money(dto.hourly_rate) if individual else None,
            "location": dto.location if individual else None,
            "qualifications": (dto.qualifications or []) if individual else [],
            "prices": None if individual else round_money(dto.prices),
        }

        existing = await self._repo.get_application(user.email, user.role)
        if existing is None:
            application = TutorApplication(user_id=user.id, email=user.email, role=user.role, **fields)
            logger.info("Tutor application created", extra={"uid": user.uid, "role": user.role.value})
        else:
            application = existing.model_copy(update={**fields, "updated_at": datetime.now(UTC)})
            logger.info("Tutor application updated", extra={"uid": user.uid, "role": user.role.value})
        return await self._repo.save_application(application)
