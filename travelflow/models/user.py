"""
User Model

Users belong to exactly one tenant. Access is carried by two fields:

- role_id: reference to a tenant Role, the authoritative permission source
- role: free-text label kept for accounts created before structured roles.
  It is rewritten with the role name on every assignment and is only read
  for permission decisions by the legacy ADMIN bypass.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from travelflow.database import Base
import uuid

# Label given to agency founders before structured roles existed
LEGACY_ADMIN_LABEL = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Login is by email alone, so emails are unique across tenants
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    role = Column(String(100), nullable=False, default="")
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="users")
    role_ref = relationship("Role", back_populates="users")

    __table_args__ = (
        Index('idx_user_tenant_active', 'tenant_id', 'is_active'),
        Index('idx_user_tenant_role', 'tenant_id', 'role_id'),
    )

    def __repr__(self):
        return f"<User {self.email} (tenant={self.tenant_id})>"

    @property
    def role_name(self) -> str:
        """Display name of the current role, falling back to the legacy label."""
        if self.role_ref is not None:
            return self.role_ref.name
        return self.role

    def assign_role(self, role) -> None:
        """Point the user at ``role`` and sync the legacy label with it."""
        self.role_id = role.id
        self.role = role.name
