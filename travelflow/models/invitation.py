"""
Invitation Model

An invitation binds an email address to a tenant and a role until it is
redeemed. Rows are never deleted so the history stays auditable.

Stored status moves PENDING -> ACCEPTED or PENDING -> REVOKED. Expiry is
not stored: a PENDING row past expires_at reads as EXPIRED and becomes
PENDING again when a resend pushes expires_at forward.

role_id is only NULL on settled invitations whose role was later deleted.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional
from travelflow.database import Base
import enum
import secrets
import uuid


class InvitationStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    invited_by_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    email = Column(String(255), nullable=False, index=True)

    # Opaque bearer credential embedded in the invite link
    token = Column(String(128), nullable=False, unique=True, index=True)

    status = Column(
        SQLEnum(InvitationStatus, native_enum=False, length=20),
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True
    )

    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="invitations")
    role = relationship("Role", back_populates="invitations")

    __table_args__ = (
        Index('idx_invitation_tenant_status', 'tenant_id', 'status'),
        Index('idx_invitation_tenant_email', 'tenant_id', 'email'),
    )

    def __repr__(self):
        return f"<Invitation {self.email} status={self.status} (tenant={self.tenant_id})>"

    @staticmethod
    def generate_token() -> str:
        """256 bits from the OS CSPRNG, URL safe."""
        return secrets.token_urlsafe(32)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return now > self.expires_at

    def effective_status(self, now: Optional[datetime] = None) -> InvitationStatus:
        """Stored status with time-based expiry applied to PENDING rows."""
        if self.status == InvitationStatus.PENDING and self.is_expired(now):
            return InvitationStatus.EXPIRED
        return self.status
