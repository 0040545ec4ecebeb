from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from .common import NotificationType


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[UUID] = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ReadAllResponse(BaseModel):
    updated: int
