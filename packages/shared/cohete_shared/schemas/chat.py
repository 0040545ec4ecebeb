from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    project_id: Optional[UUID] = None


class ChatMessageRead(BaseModel):
    id: Optional[UUID] = None  # unset for replies that are not persisted
    project_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    role: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}
