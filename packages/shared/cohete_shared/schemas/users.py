"""User, session and profile schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator

from .common import UserRole, reject_null


# ---------------------------------------------------------------------------
# Auth requests
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: str
    role: UserRole = UserRole.CONTENT_CREATOR


class LoginRequest(BaseModel):
    """Username or email plus password."""
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PrimaryAccountRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=3, max_length=50)
    password: str
    secret_key: str


class PasswordResetRequest(BaseModel):
    identifier: str = Field(min_length=1)


class PasswordResetResponse(BaseModel):
    message: str
    debug_token: Optional[str] = None  # only populated in debug mode


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# ---------------------------------------------------------------------------
# Profile / admin
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: Optional[str] = None
    theme: Optional[str] = None

    @field_validator("full_name", "preferred_language", "theme")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class AdminUserCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: str
    role: UserRole = UserRole.CONTENT_CREATOR
    is_primary: bool = False
    job_title: Optional[str] = None
    department: Optional[str] = None


class AdminUserUpdate(ProfileUpdate):
    role: Optional[UserRole] = None
    is_primary: Optional[bool] = None

    @field_validator("role", "is_primary")
    @classmethod
    def admin_fields_not_null(cls, value):
        return reject_null(value)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class UserRead(BaseModel):
    """Full user record without the password hash."""
    id: UUID4
    full_name: str
    username: str
    email: Optional[str] = None
    is_primary: bool
    role: UserRole
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: str
    theme: str
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Directory entry visible to every authenticated user."""
    id: UUID4
    full_name: str
    username: str
    is_primary: bool
    role: UserRole
    job_title: Optional[str] = None
    department: Optional[str] = None
    profile_image: Optional[str] = None

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    data: List[UserSummary]


class ImageUploadResponse(BaseModel):
    path: str
