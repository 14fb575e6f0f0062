# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Ownership helpers shared by the content routers.

Every mutating handler loads its target through one of these helpers before
touching it.  The helpers only read; a failed check raises before the handler
gets a chance to write anything.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from core.logger import logger
from models.post import Post


def ensure_owner(owner_id: int, actor, detail: str) -> None:
    """Raise 403 with *detail* unless *actor* is the owner."""
    if owner_id != actor.id:
        logger.warning("Ownership check failed: user_id=%s owner_id=%s (%s)", actor.id, owner_id, detail)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_or_404(db: Session, model, obj_id: int, detail: str):
    """Load a row by primary key or raise 404 with *detail*."""
    obj = db.query(model).filter(model.id == obj_id).first()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return obj


def own_post_of_resource(db: Session, resource, actor, detail: str) -> Post:
    """
    Resources have no owner column, so the decision is made on the parent
    post: only its author may change or remove the attachment.
    """
    post = db.query(Post).filter(Post.id == resource.post_id).first()
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Associated post not found")
    ensure_owner(post.author_id, actor, detail)
    return post
