# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the research endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------
# Upload and edit are multipart forms and take Form(...) parameters directly;
# only delete carries a JSON body.


class DeletePaperRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")


# -- Responses -------------------------------------------------------------


class PaperResponse(BaseModel):
    id: str = Field(serialization_alias="_id")
    title: str
    abstract: str
    tags: List[str]
    author_id: str = Field(serialization_alias="authorId")
    author_name: str = Field(serialization_alias="authorName")
    file_url: str = Field(serialization_alias="fileUrl")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

    model_config = {"from_attributes": True}


class PaperMutationResponse(BaseModel):
    message: str
    paper: PaperResponse
