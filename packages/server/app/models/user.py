"""User and password reset models."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    full_name: str = Field(nullable=False)
    username: str = Field(nullable=False, unique=True, index=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    password_hash: Optional[str] = Field(default=None)  # null for OAuth accounts
    is_primary: bool = Field(default=False, nullable=False)
    role: str = Field(default="content_creator", nullable=False)
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: str = Field(default="es", nullable=False)
    theme: str = Field(default="light", nullable=False)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))


class PasswordResetToken(UUIDMixin, SQLModel, table=True):
    __tablename__ = "password_reset_tokens"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    token: str = Field(nullable=False, unique=True, index=True)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
