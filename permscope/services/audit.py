"""
Grant drift audit.

Compares each user's grants with their role template and with the catalog.
Drift from the template is expected (admins edit grants per user); the
report makes it visible. Grants that are not in the catalog at all are
dangling ids left behind by catalog changes.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from permscope.catalog.registry import CatalogRegistry
from permscope.models.org import User
from permscope.store.grants import GrantStore, store_call

MISSING_PERMISSION = "missing_permission"
EXTRA_PERMISSION = "extra_permission"
MISSING_MENU = "missing_menu"
EXTRA_MENU = "extra_menu"
UNKNOWN_PERMISSION = "unknown_permission"
UNKNOWN_MENU = "unknown_menu"


@dataclass(frozen=True)
class GrantIssue:
    issue_type: str
    item_id: str
    details: str


@dataclass(frozen=True)
class UserGrantIssues:
    user_id: int
    display_name: str
    role: str
    issues: tuple[GrantIssue, ...]


@dataclass
class DiagnosticReport:
    total_users: int = 0
    users: list[UserGrantIssues] = field(default_factory=list)
    issues_by_type: Counter = field(default_factory=Counter)
    issues_by_role: Counter = field(default_factory=Counter)

    @property
    def issue_count(self) -> int:
        return sum(self.issues_by_type.values())


def grant_drift(
    registry: CatalogRegistry,
    role: str,
    permissions: Iterable[str],
    menus: Iterable[str],
) -> list[GrantIssue]:
    permissions = set(permissions)
    menus = set(menus)
    default_perms = registry.templates.default_permissions(role)
    default_menus = registry.templates.default_menus(role)
    issues: list[GrantIssue] = []

    for perm in sorted(permissions - registry.permissions.ids()):
        issues.append(GrantIssue(UNKNOWN_PERMISSION, perm, f"granted permission {perm!r} is not in the catalog"))
    for menu in sorted(menus - registry.menus.ids()):
        issues.append(GrantIssue(UNKNOWN_MENU, menu, f"granted menu feature {menu!r} is not in the catalog"))

    known_perms = permissions & registry.permissions.ids()
    known_menus = menus & registry.menus.ids()
    for perm in sorted(default_perms - permissions):
        issues.append(GrantIssue(MISSING_PERMISSION, perm, f"lacks role default {registry.permissions.label(perm)!r}"))
    for perm in sorted(known_perms - default_perms):
        issues.append(GrantIssue(EXTRA_PERMISSION, perm, f"holds {registry.permissions.label(perm)!r} beyond role defaults"))
    for menu in sorted(default_menus - menus):
        issues.append(GrantIssue(MISSING_MENU, menu, f"lacks role default menu {registry.menus.label(menu)!r}"))
    for menu in sorted(known_menus - default_menus):
        issues.append(GrantIssue(EXTRA_MENU, menu, f"has menu {registry.menus.label(menu)!r} beyond role defaults"))
    return issues


@store_call("list_users")
def _all_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).where(User.is_active.is_(True)).order_by(User.id)))


def diagnostic_report(db: Session, registry: CatalogRegistry) -> DiagnosticReport:
    store = GrantStore(db)
    report = DiagnosticReport()
    for user in _all_users(db):
        report.total_users += 1
        grants = store.get_user_grants(user.id)
        if grants is None:
            continue
        issues = grant_drift(registry, grants.role, grants.permissions, grants.menus)
        if not issues:
            continue
        report.users.append(
            UserGrantIssues(user_id=user.id, display_name=user.display_name, role=user.role, issues=tuple(issues))
        )
        for issue in issues:
            report.issues_by_type[issue.issue_type] += 1
            report.issues_by_role[user.role] += 1
    return report
