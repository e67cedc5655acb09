"""
Role Model

A role is a named, tenant-scoped bundle of capability strings.
Names are unique within a tenant; the same name may exist in many tenants.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from travelflow.database import Base
import uuid


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(100), nullable=False)

    # Stored as a sorted JSON list; read back through permission_set
    permissions = Column(JSON, nullable=False, default=list)

    # Seeded roles cannot be deleted
    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="roles")
    users = relationship("User", back_populates="role_ref")
    invitations = relationship("Invitation", back_populates="role")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'name', name='uq_role_tenant_name'),
    )

    def __repr__(self):
        return f"<Role {self.name} (tenant={self.tenant_id})>"

    @property
    def permission_set(self) -> frozenset:
        return frozenset(self.permissions or ())
