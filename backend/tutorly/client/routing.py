"""
Router-level redirect policy.

`RoutePolicy` is the single place that decides where a visitor may go; the
session context and page-initiated navigation both go through `Router`, which
applies those decisions.
"""
from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from tutorly.client.errors import RedirectLoopError
from tutorly.client.guards import (
    ADMIN_GUARD,
    AUTH_PATH,
    STUDENT_GUARD,
    TUTOR_GUARD,
    GuardDecision,
    Outcome,
)
from tutorly.core.models.user import Role
from tutorly.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tutorly.client.guards import RouteGuard
    from tutorly.client.session import Session

logger = get_logger(__name__)

LANDING_PAGES = {
    Role.STUDENT: "/studentprofile",
    Role.INDIVIDUAL: "/tutorprofile",
    Role.MASS: "/tutorprofile",
    Role.ADMIN: "/admin",
}

DEFAULT_ROUTES: dict[str, RouteGuard] = {
    "/studentprofile": STUDENT_GUARD,
    "/stripe-payment": STUDENT_GUARD,
    "/payment-history": STUDENT_GUARD,
    "/mycalendar": STUDENT_GUARD,
    "/addnewcourse": TUTOR_GUARD,
    "/tutorprofile": TUTOR_GUARD,
    "/createtutorprofile": TUTOR_GUARD,
    "/mycourses": TUTOR_GUARD,
    "/tutorcalender": TUTOR_GUARD,
    "/uploadvideo": TUTOR_GUARD,
    "/manageSchedule": TUTOR_GUARD,
    "/admin": ADMIN_GUARD,
}


def normalize_path(path: str) -> str:
    """Strip query, fragment and trailing slash; ensure a leading slash."""
    cleaned = urlsplit(path or "/").path or "/"
    if not cleaned.startswith("/"):
        cleaned = f"/{cleaned}"
    if len(cleaned) > 1:
        cleaned = cleaned.rstrip("/") or "/"
    return cleaned


class RoutePolicy:
    def __init__(self, routes: Mapping[str, RouteGuard] | None = None) -> None:
        table = DEFAULT_ROUTES if routes is None else routes
        self._routes = {normalize_path(p): g for p, g in table.items()}

    def guard_for(self, path: str) -> RouteGuard | None:
        """Return the guard protecting `path`; sub-paths inherit their prefix's guard."""
        path = normalize_path(path)
        best: str | None = None
        for prefix in self._routes:
            if path == prefix or path.startswith(f"{prefix}/"):
                if best is None or len(prefix) > len(best):
                    best = prefix
        return self._routes[best] if best is not None else None

    def decide(self, session: Session, path: str) -> GuardDecision:
        path = normalize_path(path)
        guard = self.guard_for(path)
        if guard is None:
            return GuardDecision(Outcome.RENDER, path)
        return guard.evaluate(session, path)

    def landing_path(self, session: Session) -> str:
        """Where a settled session should land."""
        if session.profile is None:
            return AUTH_PATH
        return LANDING_PAGES.get(session.profile.role, AUTH_PATH)


class Router:
    """Holds the current location and applies policy decisions."""

    MAX_REDIRECTS = 5

    def __init__(self, policy: RoutePolicy | None = None, *, initial_path: str = "/") -> None:
        self.policy = policy or RoutePolicy()
        self._location = normalize_path(initial_path)
        self._view: GuardDecision | None = None
        self.history: list[str] = [self._location]

    @property
    def location(self) -> str:
        return self._location

    @property
    def view(self) -> GuardDecision | None:
        """The decision currently displayed at `location` (RENDER or LOADING)."""
        return self._view

    def navigate(self, path: str, session: Session) -> GuardDecision:
        """Go to `path`, following redirects until a view renders or waits."""
        decision = self._resolve(normalize_path(path), session)
        self._commit(decision)
        return decision

    def refresh(self, session: Session) -> GuardDecision:
        """Re-evaluate the current location after a session change."""
        decision = self._resolve(self._location, session)
        self._commit(decision)
        return decision

    def _resolve(self, path: str, session: Session) -> GuardDecision:
        chain = [path]
        decision = self.policy.decide(session, path)
        while decision.is_redirect:
            target = decision.location
            if target in chain or len(chain) > self.MAX_REDIRECTS:
                raise RedirectLoopError([*chain, target])
            logger.debug("Redirecting", extra={"from": chain[-1], "to": target, "guard": decision.guard})
            chain.append(target)
            decision = self.policy.decide(session, target)
        return decision

    def _commit(self, decision: GuardDecision) -> None:
        if decision.location != self._location:
            self.history.append(decision.location)
        self._location = decision.location
        self._view = decision
