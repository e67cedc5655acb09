"""
Role Schemas
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime


class RoleWrite(BaseModel):
    """Create or replace a role definition."""
    name: str = Field(..., min_length=1, max_length=100)
    permissions: List[str] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {"name": "Ventas senior", "permissions": ["dashboard", "ventas", "clientes"]}
        }


class RoleResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    permissions: List[str]
    is_default: bool
    created_at: datetime
    user_count: int = 0
    pending_invitation_count: int = 0

    class Config:
        from_attributes = True

    @classmethod
    def from_summary(cls, summary) -> "RoleResponse":
        role = summary.role
        return cls(
            id=role.id,
            tenant_id=role.tenant_id,
            name=role.name,
            permissions=sorted(role.permissions or ()),
            is_default=role.is_default,
            created_at=role.created_at,
            user_count=summary.user_count,
            pending_invitation_count=summary.pending_invitation_count,
        )


class RoleListResponse(BaseModel):
    roles: List[RoleResponse]
