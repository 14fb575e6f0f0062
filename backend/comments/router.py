# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Comment endpoints.  Only a comment's author may edit or delete it."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

from database import get_db, load_with_relations
from core.permissions import ensure_owner, get_or_404
from core.response import api_response, serialize, serialize_all
from core.security import get_current_user
from models.comment import Comment
from models.post import Post
from models.user import User
from comments.schemas import CommentCreate, CommentResponse, CommentUpdate

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_comment(
    body: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_or_404(db, Post, body.post_id, "Post not found")

    comment = Comment(post_id=body.post_id, author_id=current_user.id, content=body.content)
    db.add(comment)
    db.commit()

    comment = load_with_relations(db, Comment, comment.id, "author")
    return api_response(status.HTTP_201_CREATED, serialize(CommentResponse, comment), "Comment created successfully")


@router.get("/post/{post_id}")
def list_post_comments(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Comments on a post, newest first."""
    comments = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    return api_response(status.HTTP_200_OK, serialize_all(CommentResponse, comments), "Comments fetched successfully")


@router.patch("/{comment_id}")
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = get_or_404(db, Comment, comment_id, "Comment not found")
    ensure_owner(comment.author_id, current_user, "You are not authorized to update this comment")

    comment.content = body.content
    db.commit()

    comment = load_with_relations(db, Comment, comment_id, "author")
    return api_response(status.HTTP_200_OK, serialize(CommentResponse, comment), "Comment updated successfully")


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = get_or_404(db, Comment, comment_id, "Comment not found")
    ensure_owner(comment.author_id, current_user, "You are not authorized to delete this comment")

    db.delete(comment)
    db.commit()
    return api_response(status.HTTP_200_OK, {}, "Comment deleted successfully")
