# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the follow endpoints."""

from datetime import datetime
from typing import Optional

from core.schemas import CamelModel


class FollowResponse(CamelModel):
    id: int
    follower_id: int
    following_id: int
    created_at: datetime


class FollowUserCard(CamelModel):
    """Entry of a following / followers list."""

    id: int
    username: str
    name: str
    profile_image: Optional[str] = None
    bio: Optional[str] = None


class FollowStatus(CamelModel):
    is_following: bool
