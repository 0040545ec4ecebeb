"""Content schedules, their entries and the generated-content history."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Schedule(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "schedules"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)
    start_date: Optional[date] = None
    specifications: Optional[str] = None
    additional_instructions: Optional[str] = None
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")


class ScheduleEntry(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "schedule_entries"

    schedule_id: uuid.UUID = Field(foreign_key="schedules.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    content: Optional[str] = None
    copy_in: Optional[str] = None
    copy_out: Optional[str] = None
    design_instructions: Optional[str] = None
    platform: str = Field(nullable=False)
    post_date: Optional[date] = None
    post_time: Optional[str] = None  # HH:MM
    hashtags: Optional[str] = None
    comments: Optional[str] = None
    reference_image_prompt: Optional[str] = None
    reference_image_url: Optional[str] = None


class ContentHistory(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "content_history"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    content: str = Field(nullable=False)
    content_type: str = Field(default="post", nullable=False)
    title: Optional[str] = None
    platform: Optional[str] = None
