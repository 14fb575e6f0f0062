# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Resource endpoints – attachments (image / pdf) of a post.

A resource has no owner of its own.  Every mutation resolves the parent post
and requires the caller to be that post's author.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from core.logger import logger
from core.permissions import ensure_owner, get_or_404, own_post_of_resource
from core.response import api_response, serialize, serialize_all
from core.security import get_current_user
from models.post import Post
from models.resource import Resource
from models.user import User
from resources.schemas import ResourceCreate, ResourceResponse, ResourceTitleUpdate

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("", status_code=status.HTTP_201_CREATED)
def add_resource(
    body: ResourceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = get_or_404(db, Post, body.post_id, "Post not found")
    ensure_owner(post.author_id, current_user, "Only the post owner can add resources")

    resource = Resource(post_id=post.id, type=body.type, url=body.url, title=body.title)
    db.add(resource)
    db.commit()
    db.refresh(resource)

    logger.info("resource_add resource_id=%s post_id=%s", resource.id, post.id)
    return api_response(status.HTTP_201_CREATED, serialize(ResourceResponse, resource), "Resource added successfully")


@router.get("/post/{post_id}")
def list_post_resources(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resources = db.query(Resource).filter(Resource.post_id == post_id).order_by(Resource.id).all()
    return api_response(status.HTTP_200_OK, serialize_all(ResourceResponse, resources), "Resources fetched successfully")


@router.delete("/{resource_id}")
def delete_resource(
    resource_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resource = get_or_404(db, Resource, resource_id, "Resource not found")
    own_post_of_resource(db, resource, current_user, "Only the post owner can delete resources")

    db.delete(resource)
    db.commit()
    return api_response(status.HTTP_200_OK, {}, "Resource deleted successfully")


@router.patch("/{resource_id}/title")
def update_resource_title(
    resource_id: int,
    body: ResourceTitleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    resource = get_or_404(db, Resource, resource_id, "Resource not found")
    own_post_of_resource(db, resource, current_user, "Only the post owner can update resources")

    resource.title = body.title
    db.commit()
    db.refresh(resource)
    return api_response(status.HTTP_200_OK, serialize(ResourceResponse, resource), "Resource title updated successfully")
