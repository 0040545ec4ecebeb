"""Uploaded project document."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Document(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "documents"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    uploaded_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    filename: str = Field(nullable=False)  # stored name under upload_dir
    original_name: str = Field(nullable=False)
    mime_type: str = Field(nullable=False)
    extracted_text: Optional[str] = None
    analysis_status: str = Field(default="pending", nullable=False)  # pending | processing | completed | failed
    analysis_results: Optional[dict] = Field(default=None, sa_type=JSONType)
    analysis_error: Optional[str] = None
