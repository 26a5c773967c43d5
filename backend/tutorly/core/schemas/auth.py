from __future__ import annotations

from tutorly.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Authenticated caller extracted from a verified Supabase JWT."""

    uid: str
    email: str
    email_verified: bool = False
