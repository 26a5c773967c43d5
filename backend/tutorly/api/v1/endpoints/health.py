from __future__ import annotations

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from tutorly.config import settings
from tutorly.db.base import get_supabase_admin_client

router = APIRouter()

SERVICE_NAME = "tutorly-api"
SERVICE_VERSION = "0.1.0"


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }
    )


@router.get("/ready")
async def readiness_check():
    """Readiness check endpoint; probes the profile table."""
    db_status = "connected"
    try:
        client = get_supabase_admin_client()
        await asyncio.to_thread(
            lambda: client.table(settings.users_table).select("uid").limit(1).execute()
        )
    except Exception as e:
        db_status = f"error: {str(e)}"

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "database": db_status,
            "api_prefix": settings.api_prefix,
        }
    )
