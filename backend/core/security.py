# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  Password hashing, token handling and the session
guards live here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. JWT creation / decoding                  (PyJWT / HS256)
3. Token-pair issuing with refresh rotation
4. FastAPI dependency guards                (get_current_user, require_admin)
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.logger import logger
from database import get_db

_ALGORITHM = "HS256"

# Single message for every refresh failure: missing, malformed, expired, reused
REFRESH_TOKEN_INVALID = "Token invalid or expired"

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    The returned passlib string embeds algorithm, rounds and salt, e.g.
    ``$pbkdf2-sha256$600000$<salt>$<digest>``.
    """
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """Constant-time check of *plain* against a :func:`hash_password` result."""
    return _pbkdf2.verify(plain, stored_hash)


# ---------------------------------------------------------------------------
# 2.  JWT – access and refresh tokens
# ---------------------------------------------------------------------------


def _encode(claims: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = claims.copy()
    to_encode["iat"] = now
    to_encode["exp"] = now + expires_delta
    # tokens minted within the same second must still differ
    to_encode["jti"] = secrets.token_hex(16)
    return _jwt.encode(to_encode, secret, algorithm=_ALGORITHM)


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived token identifying *user*; carries id, username and email."""
    return _encode(
        {
            "sub": str(user.id),
            "user_id": user.id,
            "username": user.username,
            "email": user.email,
        },
        settings.access_token_secret,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Long-lived token carrying only the user id."""
    return _encode(
        {"sub": str(user.id), "user_id": user.id},
        settings.refresh_token_secret,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.  Raises HTTP 401 on any failure
    (expired, bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.access_token_secret, algorithms=[_ALGORITHM])
    except _jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def decode_refresh_token(token: str) -> dict:
    """
    Decode and verify a refresh token.  Every failure maps to the same 403
    so the caller can't tell an expired token from a forged one.
    """
    try:
        return _jwt.decode(token, settings.refresh_token_secret, algorithms=[_ALGORITHM])
    except _jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=REFRESH_TOKEN_INVALID,
        )


# ---------------------------------------------------------------------------
# 3.  Token issuer
# ---------------------------------------------------------------------------


def issue_token_pair(db: Session, user) -> tuple[str, str]:
    """
    Mint a fresh (access, refresh) pair for *user* and store the refresh
    token on the user row, replacing whatever was there.

    The commit happens before the pair is returned, so the client never holds
    a refresh token the server does not know about.  A failed write rolls the
    session back and surfaces as HTTP 500 with no tokens.
    """
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    try:
        user.refresh_token = refresh_token
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Persisting refresh token failed for user_id=%s", user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong while generating access and refresh token",
        )
    return access_token, refresh_token


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# auto_error is off because the token may arrive in the accessToken cookie
# instead of the Authorization header.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_prefix}/users/login",
    auto_error=False,
)


def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    cookie_token: Optional[str] = Cookie(None, alias="accessToken"),
    db: Session = Depends(get_db),
):
    """
    Dependency: pick up the access token (header first, then cookie), verify
    it and load the User row it names.  Returns the User ORM instance.

    Raises 401 when the token is missing, invalid, expired, or refers to a
    user that no longer exists.
    """
    token = bearer_token or cookie_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized request",
        )

    payload = decode_access_token(token)

    # Lazy import to avoid circular dependency at module load time
    from models.user import User  # noqa: E402

    user = db.query(User).filter(User.id == payload.get("user_id")).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token",
        )
    return user


def require_admin(current_user=Depends(get_current_user)):
    """
    Dependency: wraps :func:`get_current_user` and additionally asserts
    ``role == 'Admin'``.  Raises 403 otherwise.
    """
    if current_user.role != "Admin":
        logger.warning("require_admin denied: user_id=%s role=%s", current_user.id, current_user.role)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can access all users",
        )
    return current_user


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    X-Forwarded-For wins when present (first hop), then the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
