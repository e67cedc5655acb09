"""
Role Management Endpoints

CRUD over the tenant's roles. All routes require "usuarios".
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from travelflow.database import get_db
from travelflow.schemas.role import RoleListResponse, RoleResponse, RoleWrite
from travelflow.api.deps import get_permission_context, require_permission
from travelflow.core.context import PermissionContext
from travelflow.core.permissions import USERS_MODULE
from travelflow.core.roles import RoleSummary, create_role, delete_role, list_roles, update_role
from travelflow.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=RoleListResponse)
def get_roles(
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    db: Session = Depends(get_db),
):
    """Roles in creation order, with how many users and pending invitations use each."""
    return RoleListResponse(
        roles=[RoleResponse.from_summary(summary) for summary in list_roles(db, tenant_id)]
    )


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def post_role(
    body: RoleWrite,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    db: Session = Depends(get_db),
):
    role = create_role(db, tenant_id, body.name, body.permissions)
    return RoleResponse.from_summary(RoleSummary(role))


@router.put("/{role_id}", response_model=RoleResponse)
def put_role(
    role_id: str,
    body: RoleWrite,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
):
    """Rename and/or change permissions; holders' role labels follow the new name."""
    update_role(db, tenant_id, role_id, body.name, body.permissions, actor=ctx)
    summary = next(s for s in list_roles(db, tenant_id) if s.role.id == role_id)
    return RoleResponse.from_summary(summary)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_role(
    role_id: str,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
):
    """Refused for default roles and roles still in use."""
    delete_role(db, tenant_id, role_id, actor=ctx)
    return None
