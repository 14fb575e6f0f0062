# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Post endpoints – feed, CRUD, likes.

Security invariants enforced by every handler
---------------------------------------------
* JWT is required on every endpoint (via ``get_current_user``).
* Update and delete load the post first and assert
  ``post.author_id == current_user.id`` before anything is written.
* Deleting a post takes its resources and comments with it.
"""

import math
import re

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from database import get_db, load_with_relations
from core.logger import logger
from core.permissions import ensure_owner, get_or_404
from core.response import api_response, serialize, serialize_all
from core.security import get_current_user
from models.comment import Comment
from models.post import Post
from models.resource import Resource
from models.user import User
from posts.schemas import PostCreate, PostDetailResponse, PostPage, PostResponse, PostUpdate

router = APIRouter(prefix="/posts", tags=["posts"])

_HASHTAG_RE = re.compile(r"#(\w+)")
_MENTION_RE = re.compile(r"@(\w+)")

_POST_RELATIONS = ("author", "mentions", "likes", "resources")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unique(values) -> list[str]:
    """Drop blanks and duplicates, keep first-seen order."""
    seen = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def extract_hashtags(content: str) -> list[str]:
    return _unique(_HASHTAG_RE.findall(content))


def extract_mentions(content: str) -> list[str]:
    return _unique(name.lower() for name in _MENTION_RE.findall(content))


def _resolve_mentions(db: Session, usernames: list[str]) -> list[User]:
    """Usernames → User rows.  Unknown names are silently dropped."""
    names = _unique(name.lstrip("@").lower() for name in usernames)
    if not names:
        return []
    return db.query(User).filter(User.username.in_(names)).all()


def _post_query(db: Session):
    return db.query(Post).options(*[selectinload(getattr(Post, name)) for name in _POST_RELATIONS])


def _load_post(db: Session, post_id: int) -> Post:
    post = load_with_relations(db, Post, post_id, *_POST_RELATIONS)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


# ---------------------------------------------------------------------------
# POST /posts  – create a post (optionally with resource records)
# ---------------------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Persist the post, then its resources.  The two steps are separate
    commits: if the resources fail the post stays and the failure is logged.
    """
    hashtags = _unique(body.hashtags) if body.hashtags is not None else extract_hashtags(body.content)
    usernames = body.mentions if body.mentions is not None else extract_mentions(body.content)

    post = Post(
        author_id=current_user.id,
        content=body.content,
        hashtags=hashtags,
        mentions=_resolve_mentions(db, usernames),
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    if body.resources:
        try:
            for item in body.resources:
                db.add(Resource(post_id=post.id, type=item.type, url=item.url, title=item.title))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Saving resources for post_id=%s failed; post kept without them", post.id)

    logger.info("post_create post_id=%s author_id=%s resources=%d", post.id, current_user.id, len(body.resources))
    return api_response(
        status.HTTP_201_CREATED,
        serialize(PostResponse, _load_post(db, post.id)),
        "Post created successfully",
    )


# ---------------------------------------------------------------------------
# GET /posts  – paginated feed, newest first
# ---------------------------------------------------------------------------


@router.get("")
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total = db.query(Post).count()
    posts = (
        _post_query(db)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit)
    pagination = PostPage(page=page, limit=limit, total_posts=total, total_pages=total_pages, has_more=page < total_pages)
    return api_response(
        status.HTTP_200_OK,
        {"posts": serialize_all(PostResponse, posts), "pagination": pagination.model_dump(by_alias=True)},
        "Posts fetched successfully",
    )


# ---------------------------------------------------------------------------
# GET /posts/user/{user_id}  – one user's posts
# ---------------------------------------------------------------------------


@router.get("/user/{user_id}")
def list_user_posts(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    posts = (
        _post_query(db)
        .filter(Post.author_id == user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return api_response(status.HTTP_200_OK, serialize_all(PostResponse, posts), "User posts fetched successfully")


# ---------------------------------------------------------------------------
# GET /posts/{post_id}  – post with resources and comments
# ---------------------------------------------------------------------------


@router.get("/{post_id}")
def get_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _load_post(db, post_id)
    comments = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.post_id == post.id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    data = PostResponse.model_validate(post).model_dump()
    data["comments"] = comments
    return api_response(status.HTTP_200_OK, serialize(PostDetailResponse, data), "Post fetched successfully")


# ---------------------------------------------------------------------------
# PATCH /posts/{post_id}  – author-only update
# ---------------------------------------------------------------------------


@router.patch("/{post_id}")
def update_post(
    post_id: int,
    body: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partial update; omitted fields keep their value."""
    post = _load_post(db, post_id)
    ensure_owner(post.author_id, current_user, "You are not authorized to update this post")

    if body.content is not None:
        if not body.content.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content is required")
        post.content = body.content
    if body.hashtags is not None:
        post.hashtags = _unique(body.hashtags)
    if body.mentions is not None:
        post.mentions = _resolve_mentions(db, body.mentions)

    db.commit()
    return api_response(status.HTTP_200_OK, serialize(PostResponse, _load_post(db, post_id)), "Post updated successfully")


# ---------------------------------------------------------------------------
# DELETE /posts/{post_id}  – author-only delete, cascades
# ---------------------------------------------------------------------------


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove the post together with its resources and comments."""
    post = get_or_404(db, Post, post_id, "Post not found")
    ensure_owner(post.author_id, current_user, "You are not authorized to delete this post")

    db.query(Resource).filter(Resource.post_id == post.id).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.post_id == post.id).delete(synchronize_session=False)
    # like / mention association rows go with the post
    db.delete(post)
    db.commit()

    logger.info("post_delete post_id=%s author_id=%s", post_id, current_user.id)
    return api_response(status.HTTP_200_OK, {}, "Post deleted successfully")


# ---------------------------------------------------------------------------
# POST /posts/{post_id}/like  – toggle
# ---------------------------------------------------------------------------


@router.post("/{post_id}/like")
def like_unlike_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _load_post(db, post_id)

    if current_user in post.likes:
        post.likes.remove(current_user)
        message = "Post unliked successfully"
    else:
        post.likes.append(current_user)
        message = "Post liked successfully"
    db.commit()

    return api_response(status.HTTP_200_OK, serialize(PostResponse, _load_post(db, post_id)), message)
