"""Task-related Pydantic schemas: tasks, comments, attachments, dependencies, time tracking."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import UUID4

from .common import TaskGroup, TaskPriority, TaskStatus, reject_null


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    group: TaskGroup = TaskGroup.TODO
    position: int = 0
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    progress: int = Field(default=0, ge=0, le=100)


class TaskCreate(TaskBase):
    assigned_to_id: Optional[UUID4] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    group: Optional[TaskGroup] = None
    position: Optional[int] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    assigned_to_id: Optional[UUID4] = None

    @field_validator("title", "status", "priority", "group", "position", "tags", "progress")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class TaskRead(BaseModel):
    id: UUID4
    project_id: UUID4
    parent_task_id: Optional[UUID4] = None
    assigned_to_id: Optional[UUID4] = None
    created_by_id: Optional[UUID4] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    group: TaskGroup
    position: int
    ai_generated: bool
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    progress: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    is_internal: bool = False


class CommentRead(BaseModel):
    id: UUID4
    task_id: UUID4
    user_id: UUID4
    content: str
    is_internal: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

class AttachmentRead(BaseModel):
    id: UUID4
    task_id: UUID4
    file_name: str
    file_url: str  # path under upload_dir
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[UUID4] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class DependencyAdd(BaseModel):
    """Request body for POST /tasks/{taskId}/dependencies."""
    depends_on_task_id: UUID4


class DependencyRead(BaseModel):
    task_id: UUID4
    depends_on_task_id: UUID4

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Time tracking
# ---------------------------------------------------------------------------

class TimeEntryCreate(BaseModel):
    """Start a timer (no end_time) or log a finished interval."""
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class TimeEntryRead(BaseModel):
    id: UUID4
    task_id: UUID4
    user_id: UUID4
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    is_running: bool

    model_config = {"from_attributes": True}
