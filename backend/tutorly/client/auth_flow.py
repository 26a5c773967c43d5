"""
Sign-in and sign-up flows.

Both flows only drive the identity provider and the backend; where the user
ends up afterwards is decided by the session context reacting to the
provider's identity events.
"""
from __future__ import annotations

from datetime import date  # noqa: TCH003
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator

from tutorly.client.errors import BackendRequestError, SignUpValidationError
from tutorly.core.models.base import AppBaseModel
from tutorly.core.models.user import Role
from tutorly.utils.logging import get_logger
from tutorly.utils.validation import validate_individual_tutor_fields, validate_password_strength

if TYPE_CHECKING:
    from tutorly.client.backend import BackendClient
    from tutorly.client.identity import Identity, IdentityProvider

logger = get_logger(__name__)


class SignUpForm(AppBaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str
    confirm_password: str
    name: str = Field(..., min_length=1, max_length=255)
    role: Role = Role.STUDENT
    photo_url: str = ""
    bio: str | None = None
    dob: date | None = None

    # Tutor application fields
    phone_number: str | None = None
    subjects: list[str] = Field(default_factory=list)
    titles: list[str] = Field(default_factory=list)
    hourly_rate: float | None = None
    description: str | None = None
    heading: str | None = None
    location: str | None = None
    qualifications: list[str] = Field(default_factory=list)
    prices: float | None = None
    cv_url: str | None = None
    certificate_urls: list[str] = Field(default_factory=list)

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v):
        role = Role.parse(v)
        if role is Role.ADMIN:
            raise ValueError("Admin accounts cannot be registered through sign-up")
        return role

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    def to_registration(self, uid: str) -> dict[str, Any]:
        """Build the /add-user payload for the identity just created."""
        payload: dict[str, Any] = {
            "firebase_uid": uid,
            "email": self.email,
            "name": self.name.strip(),
            "role": self.role.value,
            "photo_url": self.photo_url,
            "bio": self.bio or f"New {self.role.value} account",
            "dob": self.dob.isoformat() if self.dob else None,
        }
        if self.role.is_tutor:
            payload.update(
                self.model_dump(
                    mode="json",
                    include={
                        "phone_number",
                        "subjects",
                        "titles",
                        "hourly_rate",
                        "description",
                        "heading",
                        "location",
                        "qualifications",
                        "prices",
                        "cv_url",
                        "certificate_urls",
                    },
                )
            )
        return payload


class AuthFlow:
    def __init__(self, provider: IdentityProvider, backend: BackendClient) -> None:
        self._provider = provider
        self._backend = backend

    async def sign_in(self, email: str, password: str, role: Role | str) -> Identity:
        """Sign in with the role picked on the login form.

        The role is checked against the stored profile before the provider is
        asked for credentials; a mismatch leaves the user signed out.
        """
        email = email.strip().lower()
        role = Role.parse(role)
        try:
            await self._backend.check_role(email, role)
        except BackendRequestError as err:
            # Any failed check, an unreachable backend included, ends signed out
            logger.info(
                "Role check rejected sign in",
                extra={"email": email, "role": role.value, "status": err.status_code},
            )
            await self._provider.sign_out()
            raise

        return await self._provider.sign_in_with_password(email, password)

    async def sign_up(self, form: SignUpForm) -> Identity:
        """Create the identity, register the profile and leave the user signed out
        until the email address is verified."""
        if form.password != form.confirm_password:
            raise SignUpValidationError("Passwords do not match")
        ok, message = validate_password_strength(form.password)
        if not ok:
            raise SignUpValidationError(message)
        if form.role is Role.INDIVIDUAL:
            problems = validate_individual_tutor_fields(
                subjects=form.subjects,
                titles=form.titles,
                hourly_rate=form.hourly_rate,
                phone_number=form.phone_number,
            )
            if problems:
                raise SignUpValidationError("; ".join(problems))

        identity = await self._provider.create_user(form.email, form.password)
        try:
            await self._backend.add_user(form.to_registration(identity.uid))
        finally:
            await self._provider.sign_out()

        logger.info("Account registered", extra={"uid": identity.uid, "role": form.role.value})
        return identity

    async def send_password_reset(self, email: str) -> None:
        await self._provider.send_password_reset(email.strip().lower())

    async def resend_verification(self, email: str) -> None:
        await self._provider.send_email_verification(email.strip().lower())
