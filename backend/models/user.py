# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model – the credential store."""

from sqlalchemy import Column, Integer, String, Text, Enum, DateTime
from sqlalchemy.sql import func

from database import Base

ROLES = ("Student", "Admin", "Mentor")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # passlib hash string; the salt is embedded in it
    password_hash = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    profile_image = Column(String(2048), nullable=True)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default="Student")
    # The one refresh token currently honoured for this user.  NULL after logout.
    refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
