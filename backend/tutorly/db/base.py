from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from tutorly.config import settings
from tutorly.utils.logging import get_logger

logger = get_logger(__name__)


def _client(key: str, *, keep_session: bool = False) -> Client:
    # Only the identity client holds a user session and refreshes its tokens
    return create_client(
        settings.supabase_url,
        key,
        options=ClientOptions(auto_refresh_token=keep_session, persist_session=False),
    )


def _require(value: str, name: str) -> str:
    if not value:
        raise RuntimeError(f"{name} is required")
    return value


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Return a cached Supabase client using the service role key.

    Profile and tutor tables are read and written with it; endpoints check
    ownership before calling the service.
    """
    logger.debug("Initializing Supabase admin client")
    return _client(_require(settings.supabase_service_role_key, "supabase_service_role_key"))


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped anon client, used to verify caller JWTs.

    If a JWT is provided it becomes the PostgREST bearer so RLS applies to
    any table call made with this client.
    """
    logger.debug("Creating request-scoped Supabase client")
    client = _client(_require(settings.supabase_anon_key, "supabase_anon_key"))
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client


def create_identity_supabase_client() -> Client:
    """Create the long-lived client behind the session client's identity provider."""
    logger.debug("Creating identity Supabase client")
    return _client(_require(settings.supabase_anon_key, "supabase_anon_key"), keep_session=True)
