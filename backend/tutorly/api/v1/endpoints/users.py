from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from tutorly.api.v1.schemas.user import (
    AddUserRequest,
    AddUserResponse,
    CheckRoleRequest,
    UserListResponse,
    UserRead,
)
from tutorly.core.schemas.profile import Profile
from tutorly.dependencies import (
    get_current_user,
    get_user_service,
    rate_limit_by_ip,
    require_admin,
)
from tutorly.utils.logging import get_logger

if TYPE_CHECKING:
    from tutorly.core.schemas.auth import AuthUser
    from tutorly.core.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        429: {"description": "Too many requests"},
    }
)


@router.get("/user/{uid}", response_model=Profile)
async def get_user_by_uid(
    uid: str,
    current_user: AuthUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Return the caller's own profile annotated with tutor standing.

    404 means the identity exists but registration was never completed.
    """
    if current_user.uid != uid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: You can only access your own profile",
        )
    try:
        profile = await service.get_profile(uid)
    except Exception as err:
        logger.error("Unexpected error fetching profile", extra={"uid": uid, "error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user",
        ) from err
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


@router.post("/add-user", response_model=AddUserResponse, status_code=status.HTTP_201_CREATED)
async def add_user(
    request: Request,
    payload: AddUserRequest,
    service: UserService = Depends(get_user_service),
):
    """Create or update the application profile for a freshly signed-up identity."""
    rate_limit_by_ip(request, "add-user")
    try:
        user = await service.create_or_update_user(payload)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except Exception as err:
        logger.error("Unexpected error saving user", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err
    return AddUserResponse(created=True, user=UserRead.model_validate(user))


@router.post("/check-role")
async def check_role(
    request: Request,
    payload: CheckRoleRequest,
    service: UserService = Depends(get_user_service),
):
    """Pre-validate the role a visitor picked on the login form."""
    rate_limit_by_ip(request, "check-role")
    if not payload.email or not payload.role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and role are required",
        )
    try:
        is_valid = await service.check_role(payload.email, payload.role)
    except Exception as err:
        logger.error("Unexpected error checking role", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role or email",
        )
    return JSONResponse(status_code=status.HTTP_200_OK, content={})


@router.get("/users", response_model=UserListResponse)
async def list_users(
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    role: str | None = None,
    _admin: AuthUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """List all profiles (admins only)."""
    try:
        users = await service.list_users(limit=limit, offset=offset, role=role)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    data = [UserRead.model_validate(u) for u in users]
    return UserListResponse(success=True, data=data, count=len(data))
