"""
User directory, self-service profile and administration endpoints.

GET    /api/v1/users                       - Directory of all users
PATCH  /api/v1/users/me                    - Update own profile
POST   /api/v1/users/me/change-password    - Change own password
POST   /api/v1/users/me/profile-image      - Upload profile image
POST   /api/v1/users/me/cover-image        - Upload cover image
GET    /api/v1/users/me/tasks              - Tasks assigned to the caller

GET    /api/v1/admin/users                 - List users (primary only)
POST   /api/v1/admin/users                 - Create a user (primary only)
PATCH  /api/v1/admin/users/{userId}        - Update a user (primary only)
DELETE /api/v1/admin/users/{userId}        - Delete a user (primary only)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_primary, require_user
from app.core.database import get_session
from app.services import users as user_service
from app.services.storage import read_upload, store_bytes
from cohete_shared.schemas.common import MessageResponse
from cohete_shared.schemas.tasks import TaskRead
from cohete_shared.schemas.users import (
    AdminUserCreate,
    AdminUserUpdate,
    ChangePasswordRequest,
    ImageUploadResponse,
    ProfileUpdate,
    UserListResponse,
    UserRead,
    UserSummary,
)

router = APIRouter()
admin_router = APIRouter()


async def _store_user_image(
    session: AsyncSession, auth: AuthenticatedUser, file: UploadFile, kind: str
) -> ImageUploadResponse:
    data = await read_upload(file, allowed_prefix="image/")
    path = store_bytes(data, file.filename or kind, subdir=f"users/{auth.user_id}")
    await user_service.set_image(session, auth.user, kind, path)
    return ImageUploadResponse(path=path)


# ---------------------------------------------------------------------------
# Directory & self-service
# ---------------------------------------------------------------------------


@router.get("", response_model=UserListResponse)
async def list_users(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    users = await user_service.list_users(session)
    return UserListResponse(data=[UserSummary.model_validate(u) for u in users])


@router.patch("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.update_profile(session, auth.user, body)


@router.post("/me/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await user_service.change_password(session, auth.user, body)
    return MessageResponse(message="Password updated")


@router.post("/me/profile-image", response_model=ImageUploadResponse)
async def upload_profile_image(
    file: UploadFile = File(...),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _store_user_image(session, auth, file, "profile_image")


@router.post("/me/cover-image", response_model=ImageUploadResponse)
async def upload_cover_image(
    file: UploadFile = File(...),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _store_user_image(session, auth, file, "cover_image")


@router.get("/me/tasks", response_model=List[TaskRead])
async def my_tasks(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.list_assigned_tasks(session, auth.user_id)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@admin_router.get("", response_model=List[UserRead])
async def admin_list_users(
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.list_users(session)


@admin_router.post("", response_model=UserRead, status_code=201)
async def admin_create_user(
    body: AdminUserCreate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.admin_create_user(session, body)


@admin_router.patch("/{userId}", response_model=UserRead)
async def admin_update_user(
    userId: uuid.UUID,
    body: AdminUserUpdate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.get_user_or_404(session, userId)
    return await user_service.admin_update_user(session, auth, user, body)


@admin_router.delete("/{userId}", status_code=204)
async def admin_delete_user(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.get_user_or_404(session, userId)
    await user_service.admin_delete_user(session, auth, user)
