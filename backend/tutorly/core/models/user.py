from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import Field, field_validator

from .base import AppBaseModel, TimestampedModel


class Role(str, Enum):
    """Application role carried by a user profile.

    Individual and Mass are the two kinds of tutor.
    """

    STUDENT = "Student"
    INDIVIDUAL = "Individual"
    MASS = "Mass"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: str | Role | None) -> Role:
        """Parse a role name case-insensitively (``student`` -> ``Student``)."""
        if isinstance(value, Role):
            return value
        normalized = (value or "").strip().lower()
        for role in cls:
            if role.value.lower() == normalized:
                return role
        allowed = ", ".join(r.value for r in cls)
        raise ValueError(f"Invalid role: {value}. Must be one of: {allowed}")

    @property
    def is_tutor(self) -> bool:
        return self in TUTOR_ROLES


TUTOR_ROLES = frozenset({Role.INDIVIDUAL, Role.MASS})


class ApplicationStatus(str, Enum):
    """Review state of a tutor application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TutorAccountStatus(str, Enum):
    """State of an approved tutor account."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class TutorStatus(str, Enum):
    """Derived standing reported with a profile."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"
    REJECTED = "rejected"
    NOT_REGISTERED = "not_registered"
    NOT_APPLICABLE = "not_applicable"


class User(TimestampedModel):
    """Stored application profile of a user."""

    id: UUID = Field(default_factory=uuid4, description="Internal row identifier")
    uid: str = Field(..., min_length=1, max_length=128, description="Identity provider user id")
    email: str = Field(..., max_length=320)
    name: str = Field(..., min_length=1, max_length=255)
    role: Role
    photo_url: str = ""
    bio: str = ""
    dob: date | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v):
        return Role.parse(v)


class TutorApplication(TimestampedModel):
    """Tutor application awaiting or past admin review ("candidate")."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    email: str
    name: str
    role: Role
    status: ApplicationStatus = ApplicationStatus.PENDING
    bio: str | None = None
    dob: date | None = None
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
    applied_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TutorRecord(AppBaseModel):
    """Approved tutor account."""

    user_id: UUID
    role: Role
    status: TutorAccountStatus = TutorAccountStatus.ACTIVE
