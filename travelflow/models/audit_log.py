"""
Audit Log Model

Append-only record of privileged mutations. Nothing in the application
updates or deletes these rows.
"""
from sqlalchemy import Column, String, DateTime, JSON, Index, Enum as SQLEnum
from datetime import datetime
from travelflow.database import Base
import enum
import uuid


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLogEntry(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # No foreign keys: the trail outlives the rows it describes
    tenant_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    user_name = Column(String(255), nullable=True)

    action = Column(SQLEnum(AuditAction, native_enum=False, length=10), nullable=False)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False)

    # field -> {"old": ..., "new": ...}, or a flat summary for creates/deletes
    changes = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_audit_tenant_created', 'tenant_id', 'created_at'),
        Index('idx_audit_tenant_entity', 'tenant_id', 'entity', 'entity_id'),
    )

    def __repr__(self):
        return f"<AuditLogEntry {self.action} {self.entity}/{self.entity_id} (tenant={self.tenant_id})>"
