# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the profile endpoints."""

from pydantic import BaseModel

from auth.schemas import SafeUser


class ProfileUpdateResponse(BaseModel):
    message: str
    user: SafeUser
