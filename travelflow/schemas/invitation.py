"""
Invitation Schemas

The token is never returned by the API; it only travels in the email.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from travelflow.models.invitation import InvitationStatus


class InvitationCreate(BaseModel):
    email: EmailStr
    role_id: str = Field(..., min_length=1)


class InvitationResponse(BaseModel):
    id: str
    tenant_id: str
    email: str
    role_id: Optional[str]
    role_name: Optional[str] = None
    # Stored status with time-based expiry applied
    status: InvitationStatus
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_invitation(cls, invitation) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            tenant_id=invitation.tenant_id,
            email=invitation.email,
            role_id=invitation.role_id,
            role_name=invitation.role.name if invitation.role else None,
            status=invitation.effective_status(),
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
            created_at=invitation.created_at,
        )


class InvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]
