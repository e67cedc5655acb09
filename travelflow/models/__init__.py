"""
Database Models

Every table carries tenant_id; queries filter on it at every access path.
"""
from travelflow.models.tenant import Tenant
from travelflow.models.role import Role
from travelflow.models.user import User, LEGACY_ADMIN_LABEL
from travelflow.models.invitation import Invitation, InvitationStatus
from travelflow.models.audit_log import AuditLogEntry, AuditAction

__all__ = [
    "Tenant",
    "Role",
    "User",
    "LEGACY_ADMIN_LABEL",
    "Invitation",
    "InvitationStatus",
    "AuditLogEntry",
    "AuditAction",
]
