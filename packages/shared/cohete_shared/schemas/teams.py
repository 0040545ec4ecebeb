from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import reject_null


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class TeamMemberAdd(BaseModel):
    user_id: UUID
    role: str = "member"


class TeamMemberRead(BaseModel):
    user_id: UUID
    full_name: str
    role: str
    joined_at: datetime


class TeamRead(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TeamDetail(TeamRead):
    members: List[TeamMemberRead] = Field(default_factory=list)
