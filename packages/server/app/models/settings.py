"""Per-user settings, one row per user, created on first read."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class UserSettings(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "user_settings"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, unique=True, ondelete="CASCADE")
    email_notifications: bool = Field(default=True, nullable=False)
    push_notifications: bool = Field(default=True, nullable=False)
    weekly_digest: bool = Field(default=True, nullable=False)
    timezone: str = Field(default="UTC", nullable=False)
    date_format: str = Field(default="MM/DD/YYYY", nullable=False)
    time_format: str = Field(default="12h", nullable=False)
