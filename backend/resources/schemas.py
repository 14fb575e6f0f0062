# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the resource endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import field_validator

from core.schemas import CamelModel


# -- Requests --------------------------------------------------------------
# File storage happens elsewhere; the API only records where the file lives.


class ResourceIn(CamelModel):
    type: Literal["image", "pdf"]
    url: str
    title: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _url_required(cls, value: str) -> str:
        value = value.strip().replace("\\", "/")
        if not value:
            raise ValueError("File location is required")
        return value


class ResourceCreate(ResourceIn):
    post_id: int


class ResourceTitleUpdate(CamelModel):
    title: str

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value


# -- Responses -------------------------------------------------------------


class ResourceResponse(CamelModel):
    id: int
    post_id: int
    type: str
    url: str
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime
