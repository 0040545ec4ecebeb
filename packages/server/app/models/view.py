"""Saved project views (list, kanban, calendar...)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class ProjectView(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_views"
    __table_args__ = (
        sa.Index(
            "uq_project_views_default",
            "project_id",
            unique=True,
            postgresql_where=sa.text("is_default"),
            sqlite_where=sa.text("is_default"),
        ),
    )

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)
    type: str = Field(default="list", nullable=False)
    config: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    is_default: bool = Field(default=False, nullable=False)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
