# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the post endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from core.schemas import CamelModel, NonBlankText
from comments.schemas import CommentResponse
from resources.schemas import ResourceIn, ResourceResponse
from users.schemas import UserSummary


# -- Requests --------------------------------------------------------------
# hashtags / mentions may be omitted; they are then pulled out of the content
# (#tag, @username).  Mentions are usernames and are resolved server-side.


class PostCreate(NonBlankText):
    hashtags: Optional[List[str]] = None
    mentions: Optional[List[str]] = None
    resources: List[ResourceIn] = []


class PostUpdate(CamelModel):
    content: Optional[str] = None
    hashtags: Optional[List[str]] = None
    mentions: Optional[List[str]] = None


# -- Responses -------------------------------------------------------------


class PostResponse(CamelModel):
    id: int
    author_id: int
    author: UserSummary
    content: str
    hashtags: List[str]
    mentions: List[UserSummary]
    # user ids of everyone who liked the post
    likes: List[int]
    resources: List[ResourceResponse]
    created_at: datetime
    updated_at: datetime

    @field_validator("likes", mode="before")
    @classmethod
    def _like_ids(cls, value):
        return [getattr(user, "id", user) for user in value]


class PostDetailResponse(PostResponse):
    comments: List[CommentResponse]


class PostPage(CamelModel):
    page: int
    limit: int
    total_posts: int
    total_pages: int
    has_more: bool
