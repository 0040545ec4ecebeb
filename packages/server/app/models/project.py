"""Project, membership and brand analysis models."""

from datetime import date, datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    name: str = Field(nullable=False)
    client: str = Field(nullable=False)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str = Field(default="active", nullable=False)  # active | planning | completed | on_hold
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")


class ProjectMember(UUIDMixin, SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    role: str = Field(default="member", nullable=False)
    added_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class AnalysisResult(UUIDMixin, TimestampMixin, SQLModel, table=True):
    """Marketing questionnaire for a project (at most one per project)."""

    __tablename__ = "analysis_results"

    project_id: uuid.UUID = Field(
        foreign_key="projects.id", nullable=False, unique=True, index=True, ondelete="CASCADE"
    )
    mission: Optional[str] = None
    vision: Optional[str] = None
    core_values: Optional[str] = None
    objectives: Optional[str] = None
    target_audience: Optional[str] = None
    brand_tone: Optional[str] = None
    keywords: Optional[str] = None
    buyer_persona: Optional[str] = None
    marketing_strategies: Optional[str] = None
    brand_communication_style: Optional[str] = None
    unique_value_proposition: Optional[str] = None
    summary: Optional[str] = None
    content_themes: Optional[list] = Field(default=None, sa_type=JSONType)
    competitor_analysis: Optional[list] = Field(default=None, sa_type=JSONType)
    archetypes: Optional[list] = Field(default=None, sa_type=JSONType)
    social_networks: Optional[list] = Field(default=None, sa_type=JSONType)
