"""
Tenant Context Resolution

Turns the caller's session into a PermissionContext: which tenant they act
for and which capabilities they hold right now.

The user row and its role are read on every call. Nothing is cached across
requests, so a role change or deactivation applies to the very next request.
"""
from typing import Any, Dict, FrozenSet, Optional
from sqlalchemy.orm import Session, joinedload
import logging

from travelflow.models.user import User
from travelflow.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class PermissionContext:
    """
    Request-scoped caller identity.

    ``permissions`` is None for accounts without a structured role; those are
    governed by the legacy label alone.
    """

    def __init__(
        self,
        tenant_id: str,
        user_id: str,
        user_name: Optional[str] = None,
        permissions: Optional[FrozenSet[str]] = None,
        legacy_role: Optional[str] = None,
    ):
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.user_name = user_name
        self.permissions = permissions
        self.legacy_role = legacy_role

    @property
    def has_explicit_permissions(self) -> bool:
        return self.permissions is not None

    def __repr__(self):
        return f"<PermissionContext user={self.user_id} tenant={self.tenant_id}>"


def resolve_context(db: Session, session: Optional[Dict[str, Any]]) -> PermissionContext:
    """
    Resolve the decoded session payload to a PermissionContext.

    Raises AuthenticationError when there is no session, the payload is
    incomplete, or the user no longer exists (or is inactive) in the tenant
    the session was issued for.
    """
    if not session:
        raise AuthenticationError("Not authenticated")

    user_id = session.get("sub")
    tenant_id = session.get("tenant_id")
    if not user_id or not tenant_id:
        raise AuthenticationError("Invalid session payload")

    user = db.query(User).options(joinedload(User.role_ref)).filter(
        User.id == user_id,
        User.tenant_id == tenant_id
    ).first()

    if not user:
        logger.warning(
            f"Session for unknown user {user_id}",
            extra={"tenant_id": tenant_id, "user_id": user_id}
        )
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    permissions = user.role_ref.permission_set if user.role_ref is not None else None

    return PermissionContext(
        tenant_id=user.tenant_id,
        user_id=user.id,
        user_name=user.full_name or user.email,
        permissions=permissions,
        legacy_role=user.role,
    )
