from __future__ import annotations

from fastapi import APIRouter

from .endpoints import health, users

api_router = APIRouter()

# User endpoints sit directly under the API prefix (/api/user/{uid}, /api/add-user, ...)
api_router.include_router(users.router, tags=["users"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
