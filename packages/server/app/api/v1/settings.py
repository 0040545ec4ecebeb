"""Current user's settings: GET and PATCH /api/v1/settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_user
from app.core.database import get_session
from app.services import settings as settings_service
from cohete_shared.schemas.settings import UserSettingsRead, UserSettingsUpdate

router = APIRouter()


@router.get("", response_model=UserSettingsRead)
async def read_settings(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await settings_service.get_or_create_settings(session, auth.user)


@router.patch("", response_model=UserSettingsRead)
async def update_settings(
    body: UserSettingsUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await settings_service.update_settings(session, auth.user, body)
