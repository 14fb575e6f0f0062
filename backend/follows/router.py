# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Follow endpoints – follow / unfollow and the follower graph lookups."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from database import get_db
from core.logger import logger
from core.permissions import get_or_404
from core.response import api_response, serialize, serialize_all
from core.security import get_current_user
from models.follow import Follow
from models.user import User
from follows.schemas import FollowResponse, FollowStatus, FollowUserCard

router = APIRouter(prefix="/follows", tags=["follows"])


def _find_follow(db: Session, follower_id: int, following_id: int) -> Optional[Follow]:
    return (
        db.query(Follow)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
    )


# ---------------------------------------------------------------------------
# Graph lookups – registered before /{user_id} so the literal paths win
# ---------------------------------------------------------------------------


def _following_of(db: Session, user_id: int) -> list[User]:
    edges = (
        db.query(Follow)
        .options(selectinload(Follow.following))
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .all()
    )
    return [edge.following for edge in edges]


def _followers_of(db: Session, user_id: int) -> list[User]:
    edges = (
        db.query(Follow)
        .options(selectinload(Follow.follower))
        .filter(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .all()
    )
    return [edge.follower for edge in edges]


@router.get("/following")
@router.get("/following/{user_id}")
def get_following(
    user_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Users followed by *user_id* (default: the caller)."""
    users = _following_of(db, user_id or current_user.id)
    return api_response(status.HTTP_200_OK, serialize_all(FollowUserCard, users), "Following list fetched successfully")


@router.get("/followers")
@router.get("/followers/{user_id}")
def get_followers(
    user_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Users following *user_id* (default: the caller)."""
    users = _followers_of(db, user_id or current_user.id)
    return api_response(status.HTTP_200_OK, serialize_all(FollowUserCard, users), "Followers list fetched successfully")


@router.get("/status/{target_user_id}")
def check_follow_status(
    target_user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    following = _find_follow(db, current_user.id, target_user_id) is not None
    return api_response(
        status.HTTP_200_OK,
        serialize(FollowStatus, {"is_following": following}),
        "Follow status checked successfully",
    )


# ---------------------------------------------------------------------------
# POST / DELETE /follows/{user_id}
# ---------------------------------------------------------------------------


@router.post("/{user_id}")
def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_or_404(db, User, user_id, "User to follow not found")

    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")

    if _find_follow(db, current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already following this user")

    follow = Follow(follower_id=current_user.id, following_id=user_id)
    db.add(follow)
    try:
        db.commit()
    except IntegrityError:
        # unique (follower, following) pair – a concurrent request got there first
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already following this user")
    db.refresh(follow)

    logger.info("follow follower_id=%s following_id=%s", current_user.id, user_id)
    return api_response(status.HTTP_200_OK, serialize(FollowResponse, follow), "User followed successfully")


@router.delete("/{user_id}")
def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_or_404(db, User, user_id, "User to unfollow not found")

    follow = _find_follow(db, current_user.id, user_id)
    if not follow:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are not following this user")

    db.delete(follow)
    db.commit()

    logger.info("unfollow follower_id=%s following_id=%s", current_user.id, user_id)
    return api_response(status.HTTP_200_OK, {}, "User unfollowed successfully")
