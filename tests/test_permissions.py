"""
Tests for the permission gates and the legacy ADMIN bypass.
"""
import logging

import pytest

from travelflow.core.context import PermissionContext
from travelflow.core.exceptions import AuthenticationError, PermissionDenied
from travelflow.core.permissions import (
    ALL_MODULES,
    has_permission,
    require_permission,
    require_tenant_id,
    unknown_capabilities,
)


def _ctx(permissions=None, legacy_role=None):
    return PermissionContext(
        tenant_id="tenant-1",
        user_id="user-1",
        permissions=frozenset(permissions) if permissions is not None else None,
        legacy_role=legacy_role,
    )


def test_require_tenant_id_needs_a_context():
    with pytest.raises(AuthenticationError):
        require_tenant_id(None)
    assert require_tenant_id(_ctx(["dashboard"])) == "tenant-1"


def test_require_permission_without_context_is_unauthenticated():
    with pytest.raises(AuthenticationError):
        require_permission(None, "usuarios")


def test_granted_capability_returns_tenant():
    assert require_permission(_ctx(["usuarios", "ventas"]), "usuarios") == "tenant-1"


def test_missing_capability_is_forbidden():
    with pytest.raises(PermissionDenied) as exc:
        require_permission(_ctx(["ventas"]), "usuarios")
    assert exc.value.status_code == 403
    assert exc.value.error_type == "forbidden"


def test_legacy_admin_without_role_gets_everything(caplog):
    ctx = _ctx(permissions=None, legacy_role="ADMIN")

    with caplog.at_level(logging.DEBUG, logger="travelflow.core.permissions"):
        for capability in ALL_MODULES:
            assert require_permission(ctx, capability) == "tenant-1"

    assert any("legacy_admin_bypass" in r.getMessage() for r in caplog.records)


def test_legacy_label_is_ignored_once_a_role_exists():
    ctx = _ctx(permissions=["dashboard"], legacy_role="ADMIN")

    assert not has_permission(ctx, "usuarios")
    with pytest.raises(PermissionDenied):
        require_permission(ctx, "usuarios")


@pytest.mark.parametrize("label", ["Agente", "admin", "", None])
def test_other_legacy_labels_grant_nothing(label):
    with pytest.raises(PermissionDenied):
        require_permission(_ctx(permissions=None, legacy_role=label), "dashboard")


def test_enforcement_accepts_capabilities_outside_the_catalogue():
    assert require_permission(_ctx(["reportes"]), "reportes") == "tenant-1"
    assert unknown_capabilities(["reportes", "ventas", "alpha"]) == ["alpha", "reportes"]


def test_denial_is_logged_as_security_event(caplog):
    with caplog.at_level(logging.WARNING, logger="travelflow.core.permissions"):
        with pytest.raises(PermissionDenied):
            require_permission(_ctx(["ventas"]), "bancos")

    assert any("forbidden" in r.getMessage() for r in caplog.records)
