# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from typing import List

from core.schemas import CamelModel
from users.schemas import UserInfoResponse


# -- Requests --------------------------------------------------------------


class ChangeRoleRequest(CamelModel):
    # Checked against models.user.ROLES in the handler so that the
    # self-target guard gets the first word.
    role: str


# -- Responses -------------------------------------------------------------


class Pagination(CamelModel):
    total_users: int
    current_page: int
    total_pages: int
    page_size: int


class UserListResponse(CamelModel):
    users: List[UserInfoResponse]
    pagination: Pagination


class RoleChangeResponse(CamelModel):
    user_id: int
    username: str
    role: str
