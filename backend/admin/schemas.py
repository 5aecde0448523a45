# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from auth.schemas import SafeUser


# -- Requests --------------------------------------------------------------


class ChangeRoleRequest(BaseModel):
    is_admin: bool = Field(alias="isAdmin")


# -- Responses -------------------------------------------------------------


class StatsResponse(BaseModel):
    total_users: int = Field(serialization_alias="totalUsers")
    total_papers: int = Field(serialization_alias="totalPapers")
    verified_users: int = Field(serialization_alias="verifiedUsers")
    server_time: datetime = Field(serialization_alias="serverTime")


class RoleChangeResponse(BaseModel):
    message: str
    user: SafeUser


# -- Activity log responses ------------------------------------------------


class ActivityRow(BaseModel):
    id: int = Field(serialization_alias="_id")
    action: str
    user_id: Optional[str] = Field(default=None, serialization_alias="userId")
    user_name: Optional[str] = Field(default=None, serialization_alias="userName")  # resolved from user_id
    details: Optional[str] = None
    request_ip: Optional[str] = Field(default=None, serialization_alias="requestIp")
    timestamp: datetime
