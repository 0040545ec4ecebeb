"""Stored automation rules."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class AutomationRule(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "automation_rules"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)
    description: Optional[str] = None
    trigger: str = Field(nullable=False)
    trigger_conditions: Optional[dict] = Field(default=None, sa_type=JSONType)
    action: str = Field(nullable=False)
    action_config: Optional[dict] = Field(default=None, sa_type=JSONType)
    is_active: bool = Field(default=True, nullable=False)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
