# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user listing and role management.

Listing is guarded by ``require_admin``.  The role change endpoint runs its
checks inside the handler instead, because the self-target and role-value
guards (400) must win over the admin guard (403).
"""

import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_db
from core.logger import logger
from core.response import api_response, serialize
from core.security import get_current_user, require_admin
from models.user import ROLES, User
from admin.schemas import ChangeRoleRequest, RoleChangeResponse, UserListResponse

router = APIRouter(prefix="/users", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /users/admin/users (alias /users/get-all)  – paginated user list, newest first
# ---------------------------------------------------------------------------


@router.get("/admin/users")
@router.get("/get-all")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Return one page of users (no credential data – handled by the schema)."""
    total = db.query(User).count()
    users = (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    data = {
        "users": users,
        "pagination": {
            "total_users": total,
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "page_size": limit,
        },
    }
    return api_response(status.HTTP_200_OK, serialize(UserListResponse, data), "Users fetched successfully")


# ---------------------------------------------------------------------------
# PATCH /users/admin/users/{id}/role  – promote or demote a user
# ---------------------------------------------------------------------------


@router.patch("/admin/users/{user_id}/role")
def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Change the role of another user.  Guards, in order:
    * Nobody can change their own role (prevents self-promotion / lockout).
    * Role value must be one of Student, Admin, Mentor.
    * Caller must be an Admin.
    """
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own role",
        )

    if body.role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Role must be one of: {', '.join(ROLES)}",
        )

    if current_user.role != "Admin":
        logger.warning("change_role denied: user_id=%s is not an admin", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can change user roles",
        )

    target = db.query(User).filter(User.id == user_id).first()
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    target.role = body.role
    db.commit()

    logger.info("change_role admin_id=%s target_user_id=%s new_role=%s", current_user.id, user_id, body.role)
    return api_response(
        status.HTTP_200_OK,
        serialize(RoleChangeResponse, {"user_id": target.id, "username": target.username, "role": target.role}),
        f"User role updated to {body.role} successfully",
    )
