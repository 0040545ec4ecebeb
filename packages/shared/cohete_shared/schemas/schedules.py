"""Content schedule schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, UUID4, field_validator

from .common import PeriodType, reject_null

# Areas of an entry that a regeneration request may touch
REGENERATE_AREAS = (
    "titles",
    "descriptions",
    "content",
    "copy_in",
    "copy_out",
    "design_instructions",
    "platforms",
    "hashtags",
)


class ScheduleCreate(BaseModel):
    start_date: date
    specifications: Optional[str] = None
    period_type: PeriodType = PeriodType.BIWEEKLY
    additional_instructions: Optional[str] = None


class ScheduleInstructionsUpdate(BaseModel):
    additional_instructions: Optional[str] = None


class ScheduleRegenerate(BaseModel):
    additional_instructions: Optional[str] = None
    selected_areas: Dict[str, bool] = Field(default_factory=dict)
    specific_instructions: Dict[str, str] = Field(default_factory=dict)


class ScheduleEntryUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    copy_in: Optional[str] = None
    copy_out: Optional[str] = None
    design_instructions: Optional[str] = None
    platform: Optional[str] = None
    post_date: Optional[date] = None
    post_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    hashtags: Optional[str] = None

    @field_validator("title", "platform")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class EntryCommentsUpdate(BaseModel):
    comments: Optional[str] = None


class ImageGenerationRequest(BaseModel):
    prompt: Optional[str] = None


class ScheduleEntryRead(BaseModel):
    id: UUID4
    schedule_id: UUID4
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    copy_in: Optional[str] = None
    copy_out: Optional[str] = None
    design_instructions: Optional[str] = None
    platform: str
    post_date: Optional[date] = None
    post_time: Optional[str] = None
    hashtags: Optional[str] = None
    comments: Optional[str] = None
    reference_image_prompt: Optional[str] = None
    reference_image_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScheduleRead(BaseModel):
    id: UUID4
    project_id: UUID4
    name: str
    start_date: Optional[date] = None
    specifications: Optional[str] = None
    additional_instructions: Optional[str] = None
    created_by: Optional[UUID4] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ScheduleDetail(ScheduleRead):
    entries: List[ScheduleEntryRead] = Field(default_factory=list)
