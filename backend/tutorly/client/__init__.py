from .app import TutorlyClient
from .auth_flow import AuthFlow, SignUpForm
from .guards import ADMIN_GUARD, STUDENT_GUARD, TUTOR_GUARD, GuardDecision, Outcome, RouteGuard
from .identity import Identity, IdentityProvider, SupabaseIdentityProvider
from .routing import RoutePolicy, Router
from .session import Session, SessionContext, SessionState

__all__ = [
    "ADMIN_GUARD",
    "STUDENT_GUARD",
    "TUTOR_GUARD",
    "AuthFlow",
    "GuardDecision",
    "Identity",
    "IdentityProvider",
    "Outcome",
    "RouteGuard",
    "RoutePolicy",
    "Router",
    "Session",
    "SessionContext",
    "SessionState",
    "SignUpForm",
    "SupabaseIdentityProvider",
    "TutorlyClient",
]
