"""Per-user preferences that do not belong on the profile."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, field_validator

from .common import reject_null


class DateFormat(str, Enum):
    DAY_FIRST = "DD/MM/YYYY"
    MONTH_FIRST = "MM/DD/YYYY"
    ISO = "YYYY-MM-DD"


class TimeFormat(str, Enum):
    TWELVE_HOUR = "12h"
    TWENTY_FOUR_HOUR = "24h"


def _check_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}") from None
    return value


class UserSettingsUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    timezone: Optional[str] = None
    date_format: Optional[DateFormat] = None
    time_format: Optional[TimeFormat] = None

    @field_validator(
        "email_notifications", "push_notifications", "weekly_digest", "timezone", "date_format", "time_format"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        return _check_timezone(value)


class UserSettingsRead(BaseModel):
    user_id: UUID
    email_notifications: bool
    push_notifications: bool
    weekly_digest: bool
    timezone: str
    date_format: DateFormat
    time_format: TimeFormat
    updated_at: datetime

    model_config = {"from_attributes": True}
