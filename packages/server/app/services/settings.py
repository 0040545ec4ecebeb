"""
User settings service. The row is created with defaults the first time a
user reads or updates their settings.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.settings import UserSettings
from app.models.user import User
from cohete_shared.schemas.settings import UserSettingsUpdate


async def get_or_create_settings(session: AsyncSession, user: User) -> UserSettings:
    result = await session.execute(select(UserSettings).where(UserSettings.user_id == user.id))
    settings = result.scalar_one_or_none()
    if settings is None:
        settings = UserSettings(user_id=user.id)
        session.add(settings)
        await session.flush()
    return settings


async def update_settings(session: AsyncSession, user: User, req: UserSettingsUpdate) -> UserSettings:
    settings = await get_or_create_settings(session, user)
    for key, value in req.model_dump(mode="json", exclude_unset=True).items():
        setattr(settings, key, value)
    session.add(settings)
    await session.flush()
    return settings
