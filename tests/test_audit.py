"""
Tests for the audit trail. Writes are best effort: a broken audit store
must never fail the operation being audited.
"""
import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from travelflow.models import AuditLogEntry, AuditAction, InvitationStatus
from travelflow.core import audit
from travelflow.core.audit import list_audit_entries, record_audit
from travelflow.core.invitations import issue_invitation, resend_invitation
from travelflow.core.roles import reassign_user_role


@pytest.fixture
def broken_audit_store(monkeypatch):
    """Point audit writes at a database file that cannot be opened."""
    engine = create_engine("sqlite:////nonexistent-travelflow-dir/audit.db")
    monkeypatch.setattr(audit, "SessionLocal", sessionmaker(bind=engine))
    yield
    engine.dispose()


def test_record_audit_persists_entry(db, tenant, admin_user, context_for):
    actor = context_for(admin_user)

    record_audit(actor, AuditAction.UPDATE, "users", "user-42", {"role": {"old": "A", "new": "B"}})

    entry = db.query(AuditLogEntry).one()
    assert entry.tenant_id == tenant.id
    assert entry.user_id == admin_user.id
    assert entry.user_name == admin_user.full_name
    assert entry.entity == "users"
    assert entry.entity_id == "user-42"


def test_record_audit_swallows_store_failure(broken_audit_store, admin_user, context_for, caplog):
    actor = context_for(admin_user)

    with caplog.at_level(logging.ERROR, logger="travelflow.core.audit"):
        record_audit(actor, AuditAction.CREATE, "roles", "role-1", {})

    assert any("Audit log write failed" in r.getMessage() for r in caplog.records)


def test_reassignment_survives_audit_failure(
    db, broken_audit_store, tenant, admin_user, agent_user, admin_role, context_for
):
    user = reassign_user_role(db, tenant.id, agent_user.id, admin_role.id, context_for(admin_user))

    db.refresh(user)
    assert user.role_id == admin_role.id
    assert db.query(AuditLogEntry).count() == 0


def test_resend_survives_audit_failure(
    db, broken_audit_store, tenant, admin_user, agent_role, context_for, notifier
):
    actor = context_for(admin_user)
    invitation = issue_invitation(db, tenant.id, "nuevo@andes-travel.com", agent_role.id, actor, notifier=notifier)

    resent = resend_invitation(db, tenant.id, invitation.id, actor, notifier=notifier)

    assert resent.status == InvitationStatus.PENDING
    assert len(notifier.sent) == 2


def test_list_audit_entries_is_tenant_scoped_and_newest_first(
    db, tenant, other_tenant, admin_user, make_user, context_for
):
    actor = context_for(admin_user)
    outsider = context_for(make_user(other_tenant, "jefe@patagonia-tours.com", legacy_role="ADMIN"))

    record_audit(actor, AuditAction.CREATE, "roles", "r1", {})
    record_audit(actor, AuditAction.UPDATE, "roles", "r1", {})
    record_audit(actor, AuditAction.UPDATE, "users", "u1", {})
    record_audit(outsider, AuditAction.CREATE, "roles", "r9", {})

    entries = list_audit_entries(db, tenant.id)
    assert [e.entity_id for e in entries] == ["u1", "r1", "r1"]
    assert entries[1].action == AuditAction.UPDATE

    roles_only = list_audit_entries(db, tenant.id, entity="roles", entity_id="r1")
    assert len(roles_only) == 2
    assert len(list_audit_entries(db, tenant.id, limit=1)) == 1
