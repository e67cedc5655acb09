"""
User Schemas

Request/response models for user operations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class RoleRef(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User response schema (excludes credentials)."""
    id: str
    tenant_id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    role_id: Optional[str] = None
    role_ref: Optional[RoleRef] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserRoleUpdate(BaseModel):
    """Body of a role reassignment."""
    role_id: str = Field(..., min_length=1)


class UserListResponse(BaseModel):
    """Paginated list of users."""
    users: list[UserResponse]
    total: int
    page: int
    page_size: int
