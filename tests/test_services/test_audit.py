"""Tests for the grant drift audit."""
from __future__ import annotations

from permscope.catalog import Role
from permscope.models.org import UserPermission
from permscope.services.audit import (
    EXTRA_PERMISSION,
    MISSING_MENU,
    MISSING_PERMISSION,
    UNKNOWN_PERMISSION,
    diagnostic_report,
    grant_drift,
)
from permscope.services.provisioning import update_user_grants


def test_no_drift_for_fresh_user(registry):
    role = Role.EXPERT
    assert grant_drift(
        registry,
        role.value,
        registry.templates.default_permissions(role),
        registry.templates.default_menus(role),
    ) == []


def test_drift_reports_missing_extra_and_unknown(registry):
    role = Role.EXPERT
    perms = set(registry.templates.default_permissions(role))
    perms.discard("expert_view")
    perms |= {"customer_view", "retired_permission"}
    menus = set(registry.templates.default_menus(role))
    menus.discard("dashboard")

    issues = {(i.issue_type, i.item_id) for i in grant_drift(registry, role.value, perms, menus)}

    assert issues == {
        (MISSING_PERMISSION, "expert_view"),
        (EXTRA_PERMISSION, "customer_view"),
        (UNKNOWN_PERMISSION, "retired_permission"),
        (MISSING_MENU, "dashboard"),
    }


def test_diagnostic_report(db_session, make_user, registry):
    make_user("Alice Admin", Role.ADMIN)
    sam = make_user("Sam Seller", Role.SALESPERSON)
    update_user_grants(db_session, registry, sam, permissions=registry.templates.default_permissions(Role.SALESPERSON) | {"customer_delete"})
    db_session.add(UserPermission(user_id=sam, permission_id="retired_permission"))
    db_session.commit()

    report = diagnostic_report(db_session, registry)

    assert report.total_users == 2
    assert [u.user_id for u in report.users] == [sam]
    assert report.issues_by_type == {EXTRA_PERMISSION: 1, UNKNOWN_PERMISSION: 1}
    assert report.issues_by_role == {"salesperson": 2}
    assert report.issue_count == 2
