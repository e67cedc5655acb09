"""
Role Registry

Tenant-scoped roles and their assignment to users. Every lookup filters by
tenant_id; a role or user of another tenant is reported exactly like a
missing one.
"""
from typing import Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from travelflow.models.role import Role
from travelflow.models.user import User
from travelflow.models.invitation import Invitation, InvitationStatus
from travelflow.models.audit_log import AuditAction
from travelflow.core.audit import record_audit
from travelflow.core.context import PermissionContext
from travelflow.core.permissions import DEFAULT_ROLES, unknown_capabilities
from travelflow.core.exceptions import (
    DuplicateNameError,
    InvalidInputError,
    InvalidRoleError,
    NotFoundError,
    RoleInUseError,
)

logger = logging.getLogger(__name__)


class RoleSummary:
    """A role plus the number of users and pending invitations pointing at it."""

    def __init__(self, role: Role, user_count: int = 0, pending_invitation_count: int = 0):
        self.role = role
        self.user_count = user_count
        self.pending_invitation_count = pending_invitation_count


def _clean_permissions(permissions: Optional[Iterable[str]]) -> List[str]:
    """Non-empty, catalogue-only, de-duplicated, sorted."""
    cleaned = sorted(set(permissions or ()))
    if not cleaned:
        raise InvalidInputError("A role needs at least one permission")
    unknown = unknown_capabilities(cleaned)
    if unknown:
        raise InvalidInputError(f"Unknown permissions: {', '.join(unknown)}")
    return cleaned


def _check_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise InvalidInputError("Role name is required")
    return name


def _name_taken(db: Session, tenant_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Role.id).filter(Role.tenant_id == tenant_id, Role.name == name)
    if exclude_id:
        query = query.filter(Role.id != exclude_id)
    return query.first() is not None


def list_roles(db: Session, tenant_id: str) -> List[RoleSummary]:
    """Roles of the tenant in creation order, with reference counts."""
    roles = db.query(Role).filter(
        Role.tenant_id == tenant_id
    ).order_by(Role.created_at.asc(), Role.id.asc()).all()

    user_counts = dict(
        db.query(User.role_id, func.count(User.id))
        .filter(User.tenant_id == tenant_id, User.role_id.isnot(None))
        .group_by(User.role_id)
        .all()
    )
    invite_counts = dict(
        db.query(Invitation.role_id, func.count(Invitation.id))
        .filter(
            Invitation.tenant_id == tenant_id,
            Invitation.status == InvitationStatus.PENDING,
        )
        .group_by(Invitation.role_id)
        .all()
    )

    return [
        RoleSummary(role, user_counts.get(role.id, 0), invite_counts.get(role.id, 0))
        for role in roles
    ]


def get_tenant_role(db: Session, tenant_id: str, role_id: Optional[str]) -> Role:
    """
    Load a role of ``tenant_id``.

    Raises InvalidRoleError when the id is empty, unknown, or names a role of
    another tenant.
    """
    if not role_id:
        raise InvalidRoleError()

    role = db.query(Role).filter(
        Role.id == role_id,
        Role.tenant_id == tenant_id
    ).first()

    if not role:
        raise InvalidRoleError(role_id)
    return role


def create_role(
    db: Session,
    tenant_id: str,
    name: str,
    permissions: Iterable[str],
    is_default: bool = False,
) -> Role:
    """
    Create a role. Names are unique per tenant, compared case-sensitively.

    Not audited here; callers decide.
    """
    name = _check_name(name)
    cleaned = _clean_permissions(permissions)

    if _name_taken(db, tenant_id, name):
        raise DuplicateNameError(name)

    role = Role(tenant_id=tenant_id, name=name, permissions=cleaned, is_default=is_default)
    db.add(role)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same name
        db.rollback()
        raise DuplicateNameError(name)
    db.refresh(role)

    logger.info(f"Role created: {role.name} ({role.id})", extra={"tenant_id": tenant_id})
    return role


def update_role(
    db: Session,
    tenant_id: str,
    role_id: str,
    name: str,
    permissions: Iterable[str],
    actor: PermissionContext,
) -> Role:
    """
    Rename a role and/or replace its permissions.

    The legacy label of every user holding the role is rewritten in the
    same commit.
    """
    role = db.query(Role).filter(Role.id == role_id, Role.tenant_id == tenant_id).first()
    if not role:
        raise NotFoundError("Role", role_id)

    name = _check_name(name)
    cleaned = _clean_permissions(permissions)

    if _name_taken(db, tenant_id, name, exclude_id=role.id):
        raise DuplicateNameError(name)

    changes = {}
    if role.name != name:
        changes["name"] = {"old": role.name, "new": name}
    if sorted(role.permissions or ()) != cleaned:
        changes["permissions"] = {"old": sorted(role.permissions or ()), "new": cleaned}

    role.name = name
    role.permissions = cleaned

    db.query(User).filter(
        User.tenant_id == tenant_id,
        User.role_id == role.id
    ).update({User.role: name}, synchronize_session="fetch")

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateNameError(name)
    db.refresh(role)

    logger.info(f"Role updated: {role.id}", extra={"tenant_id": tenant_id, "user_id": actor.user_id})

    if changes:
        record_audit(actor, AuditAction.UPDATE, "roles", role.id, changes)
    return role


def delete_role(db: Session, tenant_id: str, role_id: str, actor: PermissionContext) -> None:
    """
    Delete a role nobody depends on.

    Default roles, roles assigned to users and roles targeted by pending
    invitations are refused. Accepted or revoked invitations keep their row
    but lose the reference.
    """
    role = db.query(Role).filter(Role.id == role_id, Role.tenant_id == tenant_id).first()
    if not role:
        raise NotFoundError("Role", role_id)

    if role.is_default:
        raise RoleInUseError("Default roles cannot be deleted")

    user_count = db.query(User).filter(
        User.tenant_id == tenant_id,
        User.role_id == role.id
    ).count()
    if user_count:
        raise RoleInUseError(f"{user_count} user(s) still have this role")

    pending_count = db.query(Invitation).filter(
        Invitation.tenant_id == tenant_id,
        Invitation.role_id == role.id,
        Invitation.status == InvitationStatus.PENDING
    ).count()
    if pending_count:
        raise RoleInUseError(f"{pending_count} pending invitation(s) use this role")

    db.query(Invitation).filter(
        Invitation.tenant_id == tenant_id,
        Invitation.role_id == role.id
    ).update({Invitation.role_id: None}, synchronize_session="fetch")

    snapshot = {"name": role.name, "permissions": sorted(role.permissions or ())}
    db.delete(role)
    db.commit()

    logger.info(f"Role deleted: {role_id}", extra={"tenant_id": tenant_id, "user_id": actor.user_id})
    record_audit(actor, AuditAction.DELETE, "roles", role_id, snapshot)


def reassign_user_role(
    db: Session,
    tenant_id: str,
    user_id: str,
    role_id: str,
    actor: PermissionContext,
) -> User:
    """
    Give a user another role of the same tenant.

    The role reference and the legacy label change in one commit; the
    old -> new role name is always audited.
    """
    user = db.query(User).filter(
        User.id == user_id,
        User.tenant_id == tenant_id
    ).first()
    if not user:
        raise NotFoundError("User", user_id)

    role = get_tenant_role(db, tenant_id, role_id)

    old_name = user.role_name
    user.assign_role(role)
    db.commit()
    db.refresh(user)

    logger.info(
        f"User {user.id} moved to role {role.name}",
        extra={"tenant_id": tenant_id, "user_id": actor.user_id}
    )

    record_audit(
        actor,
        AuditAction.UPDATE,
        "users",
        user.id,
        {"role": {"old": old_name, "new": role.name}},
    )
    return user


def deactivate_user(db: Session, tenant_id: str, user_id: str, actor: PermissionContext) -> User:
    """
    Remove a user from the agency.

    The row is kept with is_active=False so audit history and invitation
    references stay intact; the next request on their session gets 401.
    """
    user = db.query(User).filter(
        User.id == user_id,
        User.tenant_id == tenant_id
    ).first()
    if not user:
        raise NotFoundError("User", user_id)

    if user.id == actor.user_id:
        raise InvalidInputError("You cannot remove yourself")

    user.is_active = False
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} deactivated", extra={"tenant_id": tenant_id, "user_id": actor.user_id})

    record_audit(
        actor,
        AuditAction.DELETE,
        "users",
        user.id,
        {"email": user.email, "name": user.full_name},
    )
    return user


def seed_default_roles(db: Session, tenant_id: str) -> List[Role]:
    """
    Add the default roles to a tenant that has none.

    Flushes but does not commit, so it can run inside tenant signup.
    Returns the tenant's roles either way.
    """
    existing = db.query(Role).filter(Role.tenant_id == tenant_id).order_by(Role.created_at.asc()).all()
    if existing:
        return existing

    roles = [
        Role(
            tenant_id=tenant_id,
            name=definition["name"],
            permissions=sorted(definition["permissions"]),
            is_default=True,
        )
        for definition in DEFAULT_ROLES
    ]
    db.add_all(roles)
    db.flush()
    return roles


def list_users(
    db: Session,
    tenant_id: str,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
):
    """Tenant users, newest first, optionally filtered by name/email. Returns (users, total)."""
    query = db.query(User).filter(User.tenant_id == tenant_id)
    if search:
        # Search text is literal; % and _ must not act as wildcards
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            User.full_name.ilike(pattern, escape="\\") | User.email.ilike(pattern, escape="\\")
        )

    total = query.count()
    users = query.order_by(User.created_at.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return users, total
