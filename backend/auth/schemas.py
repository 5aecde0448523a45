# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------
# Fields are optional at the schema level so that a missing value reaches the
# service and comes back as the same 400 message the clients already handle.


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# -- Responses -------------------------------------------------------------


class SafeUser(BaseModel):
    """Account projection without password hash or verification code."""

    id: str = Field(serialization_alias="_id")
    name: str
    email: str
    verified: bool
    is_admin: bool = Field(serialization_alias="isAdmin")
    profile_image: Optional[str] = Field(default=None, serialization_alias="profileImage")
    created_at: datetime = Field(serialization_alias="createdAt")
    last_login: Optional[datetime] = Field(default=None, serialization_alias="lastLogin")

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(BaseModel):
    message: str
    email: str


class LoginResponse(BaseModel):
    message: str
    user: SafeUser
    token: str  # HS256 bearer token for the admin endpoints
