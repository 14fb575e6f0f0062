# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the direct-message endpoints."""

from datetime import datetime

from pydantic import field_validator

from core.schemas import CamelModel
from users.schemas import UserSummary


# -- Requests --------------------------------------------------------------


class MessageCreate(CamelModel):
    receiver_id: int
    message: str

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message content is required")
        return value


# -- Responses -------------------------------------------------------------


class MessageResponse(CamelModel):
    id: int
    sender_id: int
    receiver_id: int
    message: str
    created_at: datetime
    updated_at: datetime


class ConversationSummary(CamelModel):
    user: UserSummary
    latest_message: MessageResponse
