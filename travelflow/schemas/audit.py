"""
Audit Log Schemas
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime

from travelflow.models.audit_log import AuditAction


class AuditLogResponse(BaseModel):
    id: str
    tenant_id: str
    user_id: str
    user_name: Optional[str]
    action: AuditAction
    entity: str
    entity_id: str
    changes: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    entries: List[AuditLogResponse]
