from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import ViewType, reject_null


class ProjectViewBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    type: ViewType = ViewType.LIST
    config: Dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False


class ProjectViewCreate(ProjectViewBase):
    pass


class ProjectViewUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    type: Optional[ViewType] = None
    config: Optional[Dict[str, Any]] = None
    is_default: Optional[bool] = None

    @field_validator("name", "type", "config", "is_default")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ProjectViewRead(ProjectViewBase):
    id: UUID
    project_id: UUID
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
