from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api.middleware.security import SecurityMiddleware
from .api.v1.router import api_router
from .config import settings
from .core.repositories.implementations.memory.user_repository import InMemoryUserRepository
from .dependencies import get_user_repository
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Tutorly API starting",
        extra={"storage": settings.storage_backend, "api_prefix": settings.api_prefix},
    )
    yield
    logger.info("Tutorly API stopped")


def create_app(*, storage_backend: str | None = None) -> FastAPI:
    """Build the API. ``storage_backend="memory"`` keeps profiles in process memory."""
    setup_logging()

    app = FastAPI(
        title="Tutorly API",
        debug=settings.debug,
        version="0.1.0",
        root_path=settings.root_path or "",
        lifespan=lifespan,
    )

    backend = storage_backend or settings.storage_backend
    if backend == "memory":
        store = InMemoryUserRepository()
        app.dependency_overrides[get_user_repository] = lambda: store
    elif backend != "supabase":
        raise ValueError(f"Unknown storage backend: {backend}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "Authorization",
            "X-Requested-With",
        ],
        max_age=600,  # Cache preflight requests for 10 minutes
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityMiddleware, api_prefix=settings.api_prefix)

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
