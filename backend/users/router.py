# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
User endpoints – registration, session lifecycle and profiles.

Security notes
--------------
* Login returns the *same* error message whether the email doesn't exist or
  the password is wrong.  This prevents user-enumeration attacks.
* Refresh tokens rotate on every use.  Only the value currently stored on the
  user row is honoured, so a token that has been refreshed once (or logged
  out) is dead even though its signature is still valid.
* change-password verifies the old password before accepting the new one,
  so a stolen (but not yet expired) token alone cannot reset the password.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from core.config import settings
from core.logger import logger
from core.response import api_response, serialize, serialize_all
from core.security import (
    REFRESH_TOKEN_INVALID,
    decode_refresh_token,
    get_current_user,
    hash_password,
    issue_token_pair,
    verify_password,
)
from models.user import User
from users.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenPair,
    UpdateProfileRequest,
    UserInfoResponse,
    UserSummary,
)

router = APIRouter(prefix="/users", tags=["users"])

# Generic message used for both "no such email" and "wrong password"
_LOGIN_FAIL = "Invalid email or password"

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_options() -> dict:
    return {"httponly": True, "secure": settings.cookie_secure, "path": "/"}


def _set_token_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(ACCESS_COOKIE, access_token, **_cookie_options())
    response.set_cookie(REFRESH_COOKIE, refresh_token, **_cookie_options())


def _clear_token_cookies(response: Response) -> None:
    # Same attributes as when set, otherwise browsers keep the original cookie
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())


# ---------------------------------------------------------------------------
# POST /users/register
# ---------------------------------------------------------------------------


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account.  The response never contains credential fields."""
    name = (body.name or body.full_name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    existing = (
        db.query(User)
        .filter(or_(User.username == body.username, User.email == body.email))
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or Email is already taken",
        )

    user = User(
        username=body.username,
        email=body.email,
        name=name,
        password_hash=hash_password(body.password),
        role="Student",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same identity
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or Email is already taken",
        )
    db.refresh(user)

    logger.info("user_register user_id=%s username=%s", user.id, user.username)
    return api_response(
        status.HTTP_201_CREATED,
        serialize(UserInfoResponse, user),
        "User is registered Successfully",
    )


# ---------------------------------------------------------------------------
# POST /users/login
# ---------------------------------------------------------------------------


@router.post("/login")
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Authenticate, mint a token pair and hand it out as body + cookies."""
    user = db.query(User).filter(User.email == body.email).first()

    # Unified failure path – no information leaks about whether the email exists
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("user_login_failed email=%s", body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_LOGIN_FAIL)

    access_token, refresh_token = issue_token_pair(db, user)
    _set_token_cookies(response, access_token, refresh_token)

    logger.info("user_login user_id=%s", user.id)
    return api_response(
        status.HTTP_200_OK,
        {
            "user": serialize(UserInfoResponse, user),
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
        "user logged in successfully",
    )


# ---------------------------------------------------------------------------
# POST /users/refresh-token
# ---------------------------------------------------------------------------


@router.post("/refresh-token")
def refresh_access_token(
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
):
    """
    Rotate the token pair.  The presented refresh token must verify AND be
    the exact value stored on its user; the stored value is replaced before
    the new pair goes out.
    """
    incoming = refresh_cookie or (body.refresh_token if body else None)
    if not incoming:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=REFRESH_TOKEN_INVALID)

    payload = decode_refresh_token(incoming)

    user = db.query(User).filter(User.id == payload.get("user_id")).first()
    if not user or user.refresh_token != incoming:
        logger.warning("refresh_token_rejected user_id=%s", payload.get("user_id"))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=REFRESH_TOKEN_INVALID)

    access_token, refresh_token = issue_token_pair(db, user)
    _set_token_cookies(response, access_token, refresh_token)

    logger.info("refresh_token_rotated user_id=%s", user.id)
    return api_response(
        status.HTTP_200_OK,
        serialize(TokenPair, {"access_token": access_token, "refresh_token": refresh_token}),
        "Access Token Refreshed",
    )


# ---------------------------------------------------------------------------
# POST /users/logout
# ---------------------------------------------------------------------------


@router.post("/logout")
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Forget the stored refresh token and drop both cookies.  Idempotent."""
    current_user.refresh_token = None
    db.commit()
    _clear_token_cookies(response)

    logger.info("user_logout user_id=%s", current_user.id)
    return api_response(status.HTTP_200_OK, {}, "user logged out")


# ---------------------------------------------------------------------------
# POST /users/change-password
# ---------------------------------------------------------------------------


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the authenticated user's password after re-checking the old one."""
    if not verify_password(body.old_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="the password is incorrect",
        )

    current_user.password_hash = hash_password(body.new_password)
    db.commit()

    logger.info("user_change_password user_id=%s", current_user.id)
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully")


# ---------------------------------------------------------------------------
# GET /users/profile  – current user
# ---------------------------------------------------------------------------


@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's public profile (no secrets)."""
    return api_response(
        status.HTTP_200_OK,
        serialize(UserInfoResponse, current_user),
        "Current user fetched successfully",
    )


@router.get("/profile/{user_id}")
def get_user_by_id(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return api_response(status.HTTP_200_OK, serialize(UserInfoResponse, user), "User fetched successfully")


# ---------------------------------------------------------------------------
# PATCH /users/update-profile
# ---------------------------------------------------------------------------


@router.patch("/update-profile")
def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Partial update of name / email / bio / profile image reference.  Fields
    left out (or empty) keep their current value.
    """
    if not any([body.name, body.email, body.bio, body.profile_image]):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field should be provided",
        )

    if body.email and body.email != current_user.email:
        taken = db.query(User).filter(User.email == body.email, User.id != current_user.id).first()
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already in use by another account",
            )

    if body.name:
        current_user.name = body.name
    if body.email:
        current_user.email = body.email
    if body.bio:
        current_user.bio = body.bio
    if body.profile_image:
        current_user.profile_image = body.profile_image

    db.commit()
    db.refresh(current_user)
    return api_response(status.HTTP_200_OK, serialize(UserInfoResponse, current_user), "User updated successfully")


# ---------------------------------------------------------------------------
# GET /users/search?query=
# ---------------------------------------------------------------------------


@router.get("/search")
def search_users(
    query: str = Query("", description="Case-insensitive match on username or name"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Up to ten users whose username or name contains *query*."""
    term = query.strip()
    if not term:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required")

    pattern = f"%{term}%"
    users = (
        db.query(User)
        .filter(or_(User.username.ilike(pattern), User.name.ilike(pattern)))
        .order_by(User.username)
        .limit(10)
        .all()
    )
    return api_response(status.HTTP_200_OK, serialize_all(UserSummary, users), "Users fetched successfully")
