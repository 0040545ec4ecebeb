"""In-app notification."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Notification(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    type: str = Field(nullable=False, default="info")
    title: str = Field(nullable=False)
    message: str = Field(nullable=False)
    related_entity_type: Optional[str] = None  # task | project | schedule
    related_entity_id: Optional[uuid.UUID] = None
    is_read: bool = Field(default=False, nullable=False)
