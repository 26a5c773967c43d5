"""
Role-gated route guards.

A guard only *decides*; the router applies the decision. While the session is
loading a guard always answers LOADING so that no redirect fires before the
profile has arrived.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from tutorly.core.models.user import TUTOR_ROLES, Role, TutorStatus

if TYPE_CHECKING:
    from tutorly.client.session import Session

AUTH_PATH = "/auth"

# Where a tutor without dashboard access is sent instead
STANDING_PAGES = {
    TutorStatus.PENDING: "/tutor-pending",
    TutorStatus.SUSPENDED: "/tutor-suspended",
    TutorStatus.REJECTED: "/tutor-rejected",
    TutorStatus.NOT_REGISTERED: "/createtutorprofile",
}


class Outcome(str, Enum):
    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: Outcome
    location: str
    guard: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.outcome is Outcome.REDIRECT


@dataclass(frozen=True)
class RouteGuard:
    name: str
    allowed_roles: frozenset[Role]
    enforce_tutor_standing: bool = False

    def allows(self, session: Session) -> bool:
        profile = session.profile
        return profile is not None and profile.role in self.allowed_roles

    def evaluate(self, session: Session, path: str) -> GuardDecision:
        if session.loading:
            return GuardDecision(Outcome.LOADING, path, self.name)

        if not self.allows(session):
            return GuardDecision(Outcome.REDIRECT, AUTH_PATH, self.name)

        profile = session.profile
        if self.enforce_tutor_standing and not profile.can_access_dashboard:
            target = STANDING_PAGES.get(profile.tutor_status)
            if target is not None and target != path:
                return GuardDecision(Outcome.REDIRECT, target, self.name)

        return GuardDecision(Outcome.RENDER, path, self.name)


STUDENT_GUARD = RouteGuard("student", frozenset({Role.STUDENT}))
TUTOR_GUARD = RouteGuard("tutor", TUTOR_ROLES, enforce_tutor_standing=True)
ADMIN_GUARD = RouteGuard("admin", frozenset({Role.ADMIN}))
