"""
User service: registration, login lookup, password reset, profile and
primary-user administration.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    AuthenticatedUser,
    hash_password,
    validate_password_strength,
    verify_password,
)
from app.core.config import get_settings
from app.models.task import Task
from app.models.user import PasswordResetToken, User
from cohete_shared.schemas.common import UserRole
from cohete_shared.schemas.users import (
    AdminUserCreate,
    AdminUserUpdate,
    ChangePasswordRequest,
    ProfileUpdate,
    RegisterRequest,
)

log = structlog.get_logger()
settings = get_settings()


def _as_utc(value: datetime) -> datetime:
    """sqlite hands back naive datetimes; treat them as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def get_by_username(session: AsyncSession, username: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def find_by_identifier(session: AsyncSession, identifier: str) -> Optional[User]:
    """Username first, then email when the identifier looks like one."""
    user = await get_by_username(session, identifier)
    if not user and "@" in identifier:
        user = await get_by_email(session, identifier)
    return user


async def _ensure_unique(
    session: AsyncSession,
    username: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    if username:
        existing = await get_by_username(session, username)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=409, detail="Username already taken")
    if email:
        existing = await get_by_email(session, email)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=409, detail="Email already registered")


async def _count_primary(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(User).where(User.is_primary.is_(True))
    )
    return result.scalar_one()


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.full_name))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def create_user(
    session: AsyncSession,
    *,
    full_name: str,
    username: str,
    password: str,
    email: Optional[str] = None,
    role: UserRole = UserRole.CONTENT_CREATOR,
    is_primary: bool = False,
    **profile,
) -> User:
    validate_password_strength(password)
    await _ensure_unique(session, username=username, email=email)
    user = User(
        full_name=full_name,
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        is_primary=is_primary,
        **profile,
    )
    session.add(user)
    await session.flush()
    log.info("user.created", user_id=str(user.id), username=username, is_primary=is_primary)
    return user


async def register_user(session: AsyncSession, req: RegisterRequest) -> User:
    """Self-registration. The first account of an empty install becomes a primary admin."""
    if req.role == UserRole.ADMIN:
        raise HTTPException(status_code=400, detail="The admin role cannot be self-assigned")

    result = await session.execute(select(func.count()).select_from(User))
    first_user = result.scalar_one() == 0

    return await create_user(
        session,
        full_name=req.full_name,
        username=req.username,
        email=req.email,
        password=req.password,
        role=UserRole.ADMIN if first_user else req.role,
        is_primary=first_user,
    )


async def authenticate(session: AsyncSession, identifier: str, password: str) -> User:
    user = await find_by_identifier(session, identifier)
    if not user or not user.password_hash:
        log.warning("auth.login_failure", identifier=identifier, reason="unknown_or_oauth")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(password, user.password_hash):
        log.warning("auth.login_failure", identifier=identifier, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.last_login_at = datetime.utcnow()
    session.add(user)
    await session.flush()
    return user


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


async def create_reset_token(session: AsyncSession, identifier: str) -> Optional[str]:
    """Issue a reset token for the user, or None when nobody matches."""
    user = await find_by_identifier(session, identifier)
    if not user:
        log.info("password_reset.unknown_identifier")
        return None

    token = secrets.token_urlsafe(32)
    session.add(
        PasswordResetToken(
            user_id=user.id,
            token=token,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.password_reset_expire_minutes),
        )
    )
    await session.flush()
    log.info("password_reset.requested", user_id=str(user.id))
    return token


async def get_valid_reset_token(session: AsyncSession, token: str) -> PasswordResetToken:
    result = await session.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == token)
    )
    reset = result.scalar_one_or_none()
    if not reset or _as_utc(reset.expires_at) < datetime.now(timezone.utc):
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    return reset


async def reset_password(session: AsyncSession, token: str, new_password: str) -> User:
    reset = await get_valid_reset_token(session, token)
    validate_password_strength(new_password)
    user = await get_user_or_404(session, reset.user_id)
    user.password_hash = hash_password(new_password)
    session.add(user)
    await session.execute(
        delete(PasswordResetToken).where(PasswordResetToken.user_id == user.id)
    )
    await session.flush()
    log.info("password_reset.completed", user_id=str(user.id))
    return user


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_profile(session: AsyncSession, user: User, req: ProfileUpdate) -> User:
    data = req.model_dump(exclude_unset=True)
    if data.get("email"):
        await _ensure_unique(session, email=data["email"], exclude_id=user.id)
    for key, value in data.items():
        setattr(user, key, value)
    session.add(user)
    await session.flush()
    return user


async def change_password(session: AsyncSession, user: User, req: ChangePasswordRequest) -> None:
    if not user.password_hash or not verify_password(req.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    validate_password_strength(req.new_password)
    user.password_hash = hash_password(req.new_password)
    session.add(user)
    await session.flush()
    log.info("user.password_changed", user_id=str(user.id))


async def set_image(session: AsyncSession, user: User, kind: str, path: str) -> User:
    setattr(user, kind, path)
    session.add(user)
    await session.flush()
    return user


async def list_assigned_tasks(session: AsyncSession, user_id: uuid.UUID) -> list[Task]:
    result = await session.execute(
        select(Task)
        .where(Task.assigned_to_id == user_id)
        .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Administration (primary users only)
# ---------------------------------------------------------------------------


async def admin_create_user(session: AsyncSession, req: AdminUserCreate) -> User:
    return await create_user(
        session,
        full_name=req.full_name,
        username=req.username,
        email=req.email,
        password=req.password,
        role=req.role,
        is_primary=req.is_primary,
        job_title=req.job_title,
        department=req.department,
    )


async def admin_update_user(
    session: AsyncSession, auth: AuthenticatedUser, user: User, req: AdminUserUpdate
) -> User:
    data = req.model_dump(exclude_unset=True)

    if "is_primary" in data and data["is_primary"] != user.is_primary:
        if user.id == auth.user_id:
            raise HTTPException(status_code=400, detail="You cannot change your own primary status")
        if not data["is_primary"] and await _count_primary(session) <= 1:
            raise HTTPException(status_code=400, detail="Cannot demote the last primary user")

    if data.get("email"):
        await _ensure_unique(session, email=data["email"], exclude_id=user.id)
    if "role" in data and data["role"] is not None:
        data["role"] = data["role"].value

    for key, value in data.items():
        setattr(user, key, value)
    session.add(user)
    await session.flush()
    log.info("user.updated_by_admin", user_id=str(user.id), actor_id=str(auth.user_id))
    return user


async def admin_delete_user(session: AsyncSession, auth: AuthenticatedUser, user: User) -> None:
    if user.id == auth.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    if user.is_primary and await _count_primary(session) <= 1:
        raise HTTPException(status_code=400, detail="Cannot delete the last primary user")
    await session.delete(user)
    await session.flush()
    log.info("user.deleted", user_id=str(user.id), actor_id=str(auth.user_id))
