"""
Tests for session -> PermissionContext resolution.
"""
import pytest

from travelflow.core.context import resolve_context
from travelflow.core.exceptions import AuthenticationError


def test_resolves_tenant_and_role_permissions(db, tenant, agent_user):
    ctx = resolve_context(db, {"sub": agent_user.id, "tenant_id": tenant.id})

    assert ctx.tenant_id == tenant.id
    assert ctx.user_id == agent_user.id
    assert ctx.permissions == frozenset({"dashboard", "ventas", "clientes"})
    assert ctx.legacy_role == "Agente"
    assert ctx.has_explicit_permissions


def test_legacy_account_has_no_explicit_permissions(db, tenant, legacy_admin):
    ctx = resolve_context(db, {"sub": legacy_admin.id, "tenant_id": tenant.id})

    assert ctx.permissions is None
    assert not ctx.has_explicit_permissions
    assert ctx.legacy_role == "ADMIN"


@pytest.mark.parametrize("session", [None, {}, {"sub": "abc"}, {"tenant_id": "abc"}])
def test_missing_or_incomplete_session_is_unauthenticated(db, session):
    with pytest.raises(AuthenticationError):
        resolve_context(db, session)


def test_session_for_another_tenant_is_rejected(db, agent_user, other_tenant):
    with pytest.raises(AuthenticationError):
        resolve_context(db, {"sub": agent_user.id, "tenant_id": other_tenant.id})


def test_inactive_user_is_rejected(db, make_user, tenant, agent_role):
    user = make_user(tenant, "former@andes-travel.com", role=agent_role, is_active=False)

    with pytest.raises(AuthenticationError):
        resolve_context(db, {"sub": user.id, "tenant_id": tenant.id})


def test_permission_change_applies_to_next_resolution(db, tenant, agent_user, agent_role):
    session = {"sub": agent_user.id, "tenant_id": tenant.id}
    assert "ventas" in resolve_context(db, session).permissions

    agent_role.permissions = ["dashboard"]
    db.commit()

    assert resolve_context(db, session).permissions == frozenset({"dashboard"})


def test_deactivation_applies_to_next_resolution(db, tenant, agent_user):
    session = {"sub": agent_user.id, "tenant_id": tenant.id}
    resolve_context(db, session)

    agent_user.is_active = False
    db.commit()

    with pytest.raises(AuthenticationError):
        resolve_context(db, session)
