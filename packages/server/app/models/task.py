"""Task, comment, attachment and time entry models."""

from datetime import datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    parent_task_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="tasks.id", index=True, ondelete="CASCADE"
    )
    assigned_to_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="users.id", index=True, ondelete="SET NULL"
    )
    created_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="pending")
    priority: str = Field(nullable=False, default="medium")
    group: str = Field(nullable=False, default="todo")  # Kanban bucket
    position: int = Field(default=0, nullable=False)
    ai_generated: bool = Field(default=False, nullable=False)
    tags: List[str] = Field(default_factory=list, sa_type=JSONType, nullable=False)
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    estimated_hours: Optional[float] = None
    progress: int = Field(default=0, nullable=False)


class TaskComment(UUIDMixin, SQLModel, table=True):
    __tablename__ = "task_comments"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")
    content: str = Field(nullable=False)
    is_internal: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class TimeEntry(UUIDMixin, SQLModel, table=True):
    __tablename__ = "time_entries"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")
    description: Optional[str] = None
    start_time: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    end_time: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    duration_minutes: Optional[int] = None
    is_running: bool = Field(default=True, nullable=False)


class TaskAttachment(UUIDMixin, SQLModel, table=True):
    __tablename__ = "task_attachments"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True, ondelete="CASCADE")
    file_name: str = Field(nullable=False)  # original upload name
    file_url: str = Field(nullable=False)
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
