from __future__ import annotations

from datetime import date, datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import BaseModel, Field, field_validator

from tutorly.core.models.base import AppBaseModel
from tutorly.core.models.user import Role  # noqa: TCH001


def _normalize_list(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    normalized: list[str] = []
    for item in v:
        if item and item.strip() and item.strip() not in normalized:
            normalized.append(item.strip())
    return normalized


class AddUserRequest(BaseModel):
    """Profile registration payload sent right after identity sign-up.

    Required fields are checked by the service so that a missing one yields the
    same 400 detail as an unknown role.
    """

    firebase_uid: str | None = Field(default=None, description="Identity provider user id")
    email: str | None = Field(default=None, max_length=320)
    name: str | None = Field(default=None, max_length=255)
    role: str | None = Field(default=None, description="Student, Individual, Mass or Admin")
    photo_url: str | None = None
    bio: str | None = Field(default=None, max_length=2000)
    dob: date | None = None

    # Tutor application fields
    phone_number: str | None = None
    subjects: list[str] | None = None
    titles: list[str] | None = None
    hourly_rate: float | None = None
    description: str | None = None
    heading: str | None = None
    location: str | None = None
    qualifications: list[str] | None = None
    prices: float | None = None
    cv_url: str | None = None
    certificate_urls: list[str] | None = None

    @field_validator("subjects", "titles", "qualifications")
    @classmethod
    def normalize_lists(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_list(v)

    @field_validator("phone_number", mode="before")
    @classmethod
    def stringify_phone(cls, v):
        if v is None or v == "":
            return None
        return str(v).strip()

    @field_validator("dob", mode="before")
    @classmethod
    def empty_dob(cls, v):
        return v or None


class UserRead(AppBaseModel):
    id: UUID
    uid: str
    email: str
    name: str
    role: Role
    photo_url: str
    bio: str
    dob: date | None
    created_at: datetime


class AddUserResponse(BaseModel):
    created: bool = True
    user: UserRead


class CheckRoleRequest(BaseModel):
    """Login pre-check: does the account behind `email` carry `role`?"""

    email: str | None = None
    role: str | None = None


class UserListResponse(BaseModel):
    success: bool = True
    data: list[UserRead]
    count: int
