"""
Session context.

`SessionContext` is the only writer of the session snapshot. It reacts to
identity-provider events, fetches the matching profile and asks the router
for exactly one navigation per settled transition.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import ConfigDict

from tutorly.client.errors import ProfileNotFoundError, TutorlyClientError
from tutorly.client.guards import AUTH_PATH
from tutorly.client.identity import Identity
from tutorly.core.models.base import AppBaseModel
from tutorly.core.schemas.profile import Profile
from tutorly.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from tutorly.client.guards import GuardDecision
    from tutorly.client.identity import IdentityProvider
    from tutorly.client.profile_fetcher import ProfileFetcher
    from tutorly.client.routing import Router

    SessionListener = Callable[["Session"], None]

logger = get_logger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    REGISTERED = "registered"
    UNREGISTERED = "unregistered"


class Session(AppBaseModel):
    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None
    profile: Profile | None = None
    loading: bool = True

    @property
    def state(self) -> SessionState:
        if self.loading:
            return SessionState.AUTHENTICATING
        if self.identity is None:
            return SessionState.ANONYMOUS
        if self.profile is None:
            return SessionState.UNREGISTERED
        return SessionState.REGISTERED


SIGNED_OUT = Session(identity=None, profile=None, loading=False)


class SessionContext:
    def __init__(self, provider: IdentityProvider, fetcher: ProfileFetcher, router: Router) -> None:
        self._provider = provider
        self._fetcher = fetcher
        self._router = router
        self._session = Session()
        self._generation = 0
        self._listeners: list[SessionListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def router(self) -> Router:
        return self._router

    def start(self) -> None:
        """Subscribe to identity-provider events."""
        if self._unsubscribe is None:
            self._unsubscribe = self._provider.subscribe(self.handle_identity_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Observe published snapshots; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, path: str) -> GuardDecision:
        """Page-initiated navigation, evaluated against the current snapshot."""
        return self._router.navigate(path, self._session)

    async def handle_identity_change(self, identity: Identity | None) -> None:
        self._generation += 1
        generation = self._generation

        if identity is None:
            logger.info("Identity signed out")
            self._settle(SIGNED_OUT, AUTH_PATH)
            return

        self._publish(self._session.model_copy(update={"loading": True}))
        self._router.refresh(self._session)

        try:
            token = await self._provider.get_id_token()
            profile = await self._fetcher.fetch(identity.uid, token)
        except ProfileNotFoundError:
            if self._is_stale(generation):
                return
            logger.info("Identity has no profile yet", extra={"uid": identity.uid})
            self._settle(Session(identity=identity, profile=None, loading=False), AUTH_PATH)
            return
        except TutorlyClientError as err:
            if self._is_stale(generation):
                return
            logger.warning(
                "Profile load failed",
                extra={"uid": identity.uid, "error_type": type(err).__name__, "error": str(err)},
            )
            self._settle(SIGNED_OUT, AUTH_PATH)
            return
        except Exception as err:
            if self._is_stale(generation):
                return
            logger.exception(
                "Unexpected error loading profile",
                extra={"uid": identity.uid, "error_type": type(err).__name__},
            )
            self._settle(SIGNED_OUT, AUTH_PATH)
            return

        if self._is_stale(generation):
            return
        session = Session(identity=identity, profile=profile, loading=False)
        logger.info("Session established", extra={"uid": identity.uid, "role": profile.role.value})
        self._settle(session, self._router.policy.landing_path(session))

    async def logout(self) -> None:
        """Sign out; always ends anonymous at /auth even if the provider call fails."""
        self._generation += 1
        try:
            await self._provider.sign_out()
        except TutorlyClientError as err:
            logger.warning("Sign out failed", extra={"error": str(err)})

        # The provider usually emits None, which already settled the session
        if self._session.state is SessionState.ANONYMOUS and self._router.location == AUTH_PATH:
            return
        self._settle(SIGNED_OUT, AUTH_PATH)

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding stale profile result", extra={"generation": generation})
            return True
        return False

    def _publish(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session)

    def _settle(self, session: Session, path: str) -> None:
        self._publish(session)
        self._router.navigate(path, session)
