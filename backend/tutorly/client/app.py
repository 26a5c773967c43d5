from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from tutorly.client.auth_flow import AuthFlow
from tutorly.client.backend import BackendClient
from tutorly.client.identity import SupabaseIdentityProvider
from tutorly.client.profile_fetcher import ProfileFetcher
from tutorly.client.routing import Router
from tutorly.client.session import SessionContext
from tutorly.config import Settings, settings
from tutorly.db.base import create_identity_supabase_client
from tutorly.utils.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from tutorly.client.guards import GuardDecision
    from tutorly.client.identity import IdentityProvider
    from tutorly.client.routing import RoutePolicy

logger = get_logger(__name__)


class TutorlyClient:
    """Wires the identity provider, backend calls, session context and router.

    Use as an async context manager; entering it restores any session the
    provider already holds.
    """

    def __init__(
        self,
        *,
        provider: IdentityProvider | None = None,
        http: httpx.AsyncClient | None = None,
        policy: RoutePolicy | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=config.backend_base_url,
            timeout=config.backend_timeout_seconds,
        )
        self.provider = provider or SupabaseIdentityProvider(create_identity_supabase_client())
        self.router = Router(policy)
        self.context = SessionContext(
            self.provider,
            ProfileFetcher(self.http, api_prefix=config.api_prefix),
            self.router,
        )
        self.auth = AuthFlow(self.provider, BackendClient(self.http, api_prefix=config.api_prefix))

    async def start(self) -> None:
        setup_logging()
        self.context.start()
        await self.provider.restore()
        logger.info("Session client started", extra={"state": self.context.state.value})

    async def aclose(self) -> None:
        self.context.stop()
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> TutorlyClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def navigate(self, path: str) -> GuardDecision:
        return self.context.navigate(path)

    async def logout(self) -> None:
        await self.context.logout()
