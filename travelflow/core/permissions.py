"""
Permission Enforcement (RBAC)

Capabilities are plain strings named after application modules. A role is a
set of them; a caller holds whatever their current role grants.

Two gates exist and every privileged path goes through one of them:

- require_tenant_id: any authenticated member of the tenant
- require_permission: member whose role grants the capability

Accounts created before structured roles carry only the legacy label. Those
labelled ADMIN keep full access until a role is assigned to them; once a
user has a role, the label no longer grants anything.
"""
from typing import Optional
import logging

from travelflow.core.context import PermissionContext
from travelflow.core.exceptions import AuthenticationError, PermissionDenied
from travelflow.models.user import LEGACY_ADMIN_LABEL
from travelflow.utils.logging import log_security_event

logger = logging.getLogger(__name__)

# Module catalogue, used to validate role definitions. Enforcement itself
# accepts any capability string a caller declares.
ALL_MODULES = (
    "dashboard",
    "clientes",
    "destinos",
    "temporadas",
    "ventas",
    "cotizaciones",
    "proveedores",
    "bancos",
    "configuracion",
    "usuarios",
)

# Gates role, user and invitation management
USERS_MODULE = "usuarios"

DEFAULT_ROLES = (
    {"name": "Admin", "permissions": ALL_MODULES},
    {
        "name": "Agente",
        "permissions": ("dashboard", "ventas", "cotizaciones", "clientes", "destinos", "temporadas"),
    },
    {"name": "Contador", "permissions": ("dashboard", "bancos", "ventas")},
)


def require_tenant_id(ctx: Optional[PermissionContext]) -> str:
    """Return the caller's tenant id; membership is the only requirement."""
    if ctx is None:
        raise AuthenticationError("Not authenticated")
    return ctx.tenant_id


def has_permission(ctx: PermissionContext, capability: str) -> bool:
    if not ctx.has_explicit_permissions:
        return ctx.legacy_role == LEGACY_ADMIN_LABEL
    return capability in ctx.permissions


def require_permission(ctx: Optional[PermissionContext], capability: str) -> str:
    """
    Return the caller's tenant id if they hold ``capability``.

    Raises AuthenticationError without a context, PermissionDenied when the
    capability is missing.
    """
    tenant_id = require_tenant_id(ctx)

    if not has_permission(ctx, capability):
        log_security_event(
            "forbidden",
            {"tenant_id": tenant_id, "user_id": ctx.user_id, "capability": capability},
            logger
        )
        raise PermissionDenied(f"Missing permission: {capability}")

    if not ctx.has_explicit_permissions:
        log_security_event(
            "legacy_admin_bypass",
            {"tenant_id": tenant_id, "user_id": ctx.user_id, "capability": capability},
            logger
        )

    return tenant_id


def unknown_capabilities(permissions) -> list:
    """Capabilities not in the module catalogue, sorted."""
    return sorted(set(permissions) - set(ALL_MODULES))
