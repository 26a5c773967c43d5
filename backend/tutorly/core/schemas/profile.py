from __future__ import annotations

from datetime import date, datetime  # noqa: TCH003

from pydantic import Field, field_validator

from tutorly.core.models.base import WireModel
from tutorly.core.models.user import Role, TutorStatus


class Profile(WireModel):
    """Application profile as served by ``GET /api/user/{uid}``.

    Shared by the API (response model) and the session client (parsing).
    """

    uid: str
    email: str = ""
    name: str
    role: Role
    photo_url: str = ""
    bio: str = ""
    dob: date | None = None
    created_at: datetime | None = None
    tutor_status: TutorStatus = TutorStatus.NOT_APPLICABLE
    can_access_dashboard: bool = True
    message: str = Field(default="User profile active")

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v):
        return Role.parse(v)

    @field_validator("photo_url", "bio", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""
