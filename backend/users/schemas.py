# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the user and session endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from core.schemas import CamelModel


def _normalise(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if not value:
        raise ValueError("must not be blank")
    return value


# -- Requests --------------------------------------------------------------


class RegisterRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    # The client may send either ``name`` or ``fullName``
    name: Optional[str] = None
    full_name: Optional[str] = None

    normalise_identity = field_validator("username", "email")(_normalise)


class LoginRequest(CamelModel):
    email: str
    password: str

    normalise_email = field_validator("email")(_normalise)


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _blank_email_keeps_current(cls, value: Optional[str]) -> Optional[str]:
        # an empty email means "leave it as it is"
        if value is None or not value.strip():
            return None
        return value.strip().lower()


# -- Responses -------------------------------------------------------------


class UserSummary(CamelModel):
    """Author / participant card embedded in posts, comments and messages."""

    id: int
    username: str
    name: str
    profile_image: Optional[str] = None


class UserInfoResponse(CamelModel):
    """Public profile – never carries the password hash or refresh token."""

    id: int
    username: str
    email: str
    name: str
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
