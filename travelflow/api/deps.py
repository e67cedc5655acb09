"""
API Dependencies

FastAPI dependencies that put the permission gates in front of route
handlers. FastAPI caches dependencies per request, so a handler that asks
for both the tenant id and the context resolves the session only once.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from travelflow.database import get_db
from travelflow.core import permissions
from travelflow.core.context import PermissionContext, resolve_context
from travelflow.core.exceptions import AuthenticationError
from travelflow.core.notifications import get_notifier
from travelflow.core.rate_limit import get_login_limiter
from travelflow.core.security import decode_access_token
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header raises our AuthenticationError (401)
# instead of FastAPI's default 403
security = HTTPBearer(auto_error=False)


def get_session_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """Decoded bearer token, or None when absent."""
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")
    return payload


def get_permission_context(
    session: Optional[dict] = Depends(get_session_payload),
    db: Session = Depends(get_db),
) -> PermissionContext:
    """Resolve the caller for this request."""
    return resolve_context(db, session)


def require_tenant(ctx: PermissionContext = Depends(get_permission_context)) -> str:
    """Tenant id of any authenticated member, whatever their role."""
    return permissions.require_tenant_id(ctx)


def require_permission(capability: str):
    """
    Dependency factory: tenant id of a caller holding ``capability``.

        @router.get("/roles")
        def list_roles(tenant_id: str = Depends(require_permission("usuarios"))):
            ...
    """

    def dependency(ctx: PermissionContext = Depends(get_permission_context)) -> str:
        return permissions.require_permission(ctx, capability)

    dependency.__name__ = f"require_permission_{capability}"
    return dependency


def get_dispatcher():
    """Notification dispatcher; overridden in tests."""
    return get_notifier()


def get_rate_limiter():
    """Login rate limiter; overridden in tests."""
    return get_login_limiter()
