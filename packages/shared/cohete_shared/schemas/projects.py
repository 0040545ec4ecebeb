from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import date, datetime
from .common import ImageAnalysisType, ProjectStatus, reject_null


class AnalysisBase(BaseModel):
    """Brand and marketing questionnaire attached to a project."""
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
    content_themes: Optional[List[Any]] = None
    competitor_analysis: Optional[List[Any]] = None
    archetypes: Optional[List[Any]] = None
    social_networks: Optional[List[Any]] = None


class AnalysisUpdate(AnalysisBase):
    pass


class AnalysisRead(AnalysisBase):
    id: UUID
    project_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    client: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ProjectStatus = ProjectStatus.ACTIVE


class ProjectCreate(ProjectBase):
    analysis: Optional[AnalysisBase] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None

    @field_validator("name", "client", "status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ProjectRead(ProjectBase):
    id: UUID
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    analysis: Optional[AnalysisRead] = None


class ProjectMemberAdd(BaseModel):
    user_ids: List[UUID]
    role: str = "member"


class ProjectMemberRead(BaseModel):
    user_id: UUID
    full_name: str
    username: str
    role: str
    added_at: datetime


class ImageInfo(BaseModel):
    filename: str
    content_type: Optional[str] = None
    size: int


class ImageAnalysisResponse(BaseModel):
    analysis_type: ImageAnalysisType
    raw_analysis: str
    structured_data: dict
    image_info: ImageInfo
