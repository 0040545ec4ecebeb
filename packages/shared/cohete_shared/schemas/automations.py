"""Stored automation rules. Rules are saved and toggled here; nothing executes them yet."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import AutomationAction, AutomationTrigger, reject_null


class AutomationRuleBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    trigger: AutomationTrigger
    trigger_conditions: Optional[Dict[str, Any]] = None
    action: AutomationAction
    action_config: Optional[Dict[str, Any]] = None
    is_active: bool = True


class AutomationRuleCreate(AutomationRuleBase):
    pass


class AutomationRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    trigger: Optional[AutomationTrigger] = None
    trigger_conditions: Optional[Dict[str, Any]] = None
    action: Optional[AutomationAction] = None
    action_config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    @field_validator("name", "trigger", "action", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class AutomationRuleRead(AutomationRuleBase):
    id: UUID
    project_id: UUID
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
