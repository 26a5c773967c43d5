"""
Security headers on API responses and the health endpoints.
"""
from __future__ import annotations

import pytest

from tutorly.api.middleware.security import SecurityMiddleware
from tutorly.config import settings

pytestmark = pytest.mark.anyio


async def test_health_reports_service(api_client):
    r = await api_client.get("/api/health/")

    assert r.status_code == 200
    assert r.json()["service"] == "tutorly-api"
    assert r.json()["status"] == "healthy"


async def test_security_headers_are_set(api_client):
    r = await api_client.get("/api/health/")

    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert "no-store" in r.headers["Cache-Control"]
    assert settings.supabase_url.rstrip("/") in r.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in r.headers


async def test_error_responses_are_not_cacheable(api_client):
    r = await api_client.post("/api/check-role", json={})

    assert r.status_code == 400
    assert "no-store" in r.headers["Cache-Control"]


@pytest.mark.parametrize(
    ("path", "audited"),
    [
        ("/api/user/u-1", True),
        ("/api/add-user", True),
        ("/api/check-role", True),
        ("/api/users", True),
        ("/api/health/", False),
        ("/other/add-user", False),
    ],
)
def test_audited_paths(path, audited):
    middleware = SecurityMiddleware(app=None, api_prefix="/api")
    assert middleware._is_audited(path) is audited
