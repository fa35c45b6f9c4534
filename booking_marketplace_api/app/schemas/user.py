"""
Pydantic models for user data.

Defines schemas for signing up, signing in, updating profiles and
reading user information.  Password hashes are never part of a read
schema.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.fullmatch(value):
        raise ValueError("Email inválido")
    return value


class UserCreate(BaseModel):
    """Schema for registering a client account."""

    email: str = Field(..., examples=["cliente@example.com"])
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, examples=["segredo123"])
    full_name: str = Field(..., min_length=1, examples=["Ana Macuácua"])
    phone: Optional[str] = Field(None, examples=["+258841234567"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nome é obrigatório")
        return v


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    role_id: int
    is_verified: bool = False
    avatar_url: Optional[str] = None
    date_of_birth: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile.

    All fields are optional; only provided fields are updated.
    """

    full_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    date_of_birth: Optional[str] = Field(None, examples=["1995-04-12"])
    location: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=2000)
    preferences: Optional[Dict[str, Any]] = None


class UserAdminUpdate(BaseModel):
    """Fields only an administrator may change."""

    role_id: Optional[int] = Field(None, ge=1, le=3)
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
