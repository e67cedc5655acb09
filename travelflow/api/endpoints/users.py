"""
User Management Endpoints

Listing agency users, moving them between roles and removing them. All
require the "usuarios" capability; queries are scoped to the caller's tenant.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from travelflow.database import get_db
from travelflow.schemas.user import UserListResponse, UserResponse, UserRoleUpdate
from travelflow.api.deps import get_permission_context, require_permission
from travelflow.core.context import PermissionContext
from travelflow.core.permissions import USERS_MODULE
from travelflow.core.roles import deactivate_user, list_users, reassign_user_role

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def get_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=255),
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    db: Session = Depends(get_db),
):
    """List users in the current tenant, newest first."""
    users, total = list_users(db, tenant_id, search=search, page=page, page_size=page_size)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.put("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: str,
    body: UserRoleUpdate,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
):
    """
    Assign another role of the same tenant to a user.

    404 for users outside the tenant, 400 invalid_role for foreign roles.
    """
    user = reassign_user_role(db, tenant_id, user_id, body.role_id, actor=ctx)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    user_id: str,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
):
    """Deactivate a user of this agency. Callers cannot remove themselves."""
    deactivate_user(db, tenant_id, user_id, actor=ctx)
    return None
