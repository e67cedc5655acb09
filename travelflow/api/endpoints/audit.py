"""
Audit Log Endpoint

Read access to the tenant's audit trail for user administrators.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from travelflow.database import get_db
from travelflow.schemas.audit import AuditLogListResponse, AuditLogResponse
from travelflow.api.deps import require_permission
from travelflow.core.audit import list_audit_entries
from travelflow.core.permissions import USERS_MODULE

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
def get_audit_logs(
    entity: Optional[str] = Query(None, max_length=50),
    entity_id: Optional[str] = Query(None, max_length=36),
    limit: int = Query(50, ge=1, le=200),
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    db: Session = Depends(get_db),
):
    entries = list_audit_entries(db, tenant_id, entity=entity, entity_id=entity_id, limit=limit)
    return AuditLogListResponse(entries=[AuditLogResponse.model_validate(e) for e in entries])
