# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the comment endpoints."""

from datetime import datetime

from core.schemas import CamelModel, NonBlankText
from users.schemas import UserSummary


# -- Requests --------------------------------------------------------------


class CommentCreate(NonBlankText):
    post_id: int


class CommentUpdate(NonBlankText):
    pass


# -- Responses -------------------------------------------------------------


class CommentResponse(CamelModel):
    id: int
    post_id: int
    author_id: int
    author: UserSummary
    content: str
    created_at: datetime
    updated_at: datetime
