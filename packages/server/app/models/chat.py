"""Per-project chat history with the marketing assistant."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ChatMessage(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "chat_messages"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    role: str = Field(nullable=False)  # user | assistant
    content: str = Field(nullable=False)
