"""
Audit Trail

Best-effort recording of privileged mutations. Callers invoke
record_audit() after their own commit; the entry is written through a
separate session so a failure here can never roll back or fail the
business operation. Failures are logged and dropped.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
import logging

from travelflow.database import SessionLocal
from travelflow.models.audit_log import AuditLogEntry, AuditAction
from travelflow.core.context import PermissionContext

logger = logging.getLogger(__name__)


def record_audit(
    actor: PermissionContext,
    action: AuditAction,
    entity: str,
    entity_id: str,
    changes: Dict[str, Any],
) -> None:
    """
    Append an audit entry for ``actor``'s tenant. Never raises.
    """
    try:
        db = SessionLocal()
        try:
            db.add(AuditLogEntry(
                tenant_id=actor.tenant_id,
                user_id=actor.user_id,
                user_name=actor.user_name,
                action=action,
                entity=entity,
                entity_id=entity_id,
                changes=changes,
            ))
            db.commit()
        finally:
            db.close()
    except Exception:
        logger.exception(
            f"Audit log write failed: {action.value} {entity}/{entity_id}",
            extra={"tenant_id": actor.tenant_id, "entity": entity, "entity_id": entity_id}
        )


def list_audit_entries(
    db: Session,
    tenant_id: str,
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 50,
) -> List[AuditLogEntry]:
    """Newest-first audit entries of one tenant."""
    query = db.query(AuditLogEntry).filter(AuditLogEntry.tenant_id == tenant_id)
    if entity:
        query = query.filter(AuditLogEntry.entity == entity)
    if entity_id:
        query = query.filter(AuditLogEntry.entity_id == entity_id)
    return query.order_by(AuditLogEntry.created_at.desc()).limit(limit).all()
