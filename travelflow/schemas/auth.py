"""
Authentication Schemas

Request/response models for login, signup and invitation acceptance.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Login request body. Emails are unique across agencies."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    """Registers a new agency and its founding user."""
    email: EmailStr
    password: str = Field(..., min_length=12, max_length=128)
    agency_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    address: Optional[str] = Field(None, max_length=512)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@andes-travel.com",
                "password": "a-long-passphrase",
                "agency_name": "Andes Travel",
                "phone": "+56 9 1234 5678",
                "address": "Av. Providencia 1234, Santiago"
            }
        }


class SignupResponse(BaseModel):
    message: str
    tenant_id: str


class AcceptInviteRequest(BaseModel):
    token: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=12, max_length=128)
    phone: Optional[str] = Field(None, max_length=50)


class InvitationCheckResponse(BaseModel):
    """Outcome of checking an invite link before showing the signup form."""
    valid: bool
    reason: Optional[str] = None
    email: Optional[str] = None
    tenant_name: Optional[str] = None
    role_name: Optional[str] = None


class PermissionContextResponse(BaseModel):
    """What the caller may do right now."""
    user_id: str
    tenant_id: str
    user_name: Optional[str]
    role: Optional[str]
    permissions: Optional[List[str]]
