"""
Provisioning of per-user grants from role templates, and admin grant edits.

Role templates are applied here and nowhere else: once written, a user's
grants are edited individually and are expected to drift from the defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from permscope.catalog.registry import CatalogRegistry
from permscope.catalog.types import Role
from permscope.models.org import User
from permscope.store.grants import GrantStore, store_call

logger = logging.getLogger(__name__)


class GrantStrategy(str, Enum):
    OVERRIDE = "override"  # replace grants with the given sets
    MERGE = "merge"  # add the given sets to the existing grants
    RESET = "reset"  # replace grants with the role defaults


class UnknownGrantIds(ValueError):
    def __init__(self, permissions: Iterable[str] = (), menus: Iterable[str] = ()) -> None:
        self.permissions = sorted(permissions)
        self.menus = sorted(menus)
        parts = []
        if self.permissions:
            parts.append(f"unknown permissions: {self.permissions}")
        if self.menus:
            parts.append(f"unknown menu features: {self.menus}")
        super().__init__("; ".join(parts))


@dataclass(frozen=True)
class BatchResult:
    role: Role
    strategy: GrantStrategy
    user_ids: tuple[int, ...]

    @property
    def updated(self) -> int:
        return len(self.user_ids)


def check_grant_ids(registry: CatalogRegistry, permissions: Iterable[str] = (), menus: Iterable[str] = ()) -> None:
    """Reject ids that are not in the catalog before they get persisted."""
    unknown_perms = set(permissions).difference(registry.permissions.ids())
    unknown_menus = set(menus).difference(registry.menus.ids())
    if unknown_perms or unknown_menus:
        raise UnknownGrantIds(unknown_perms, unknown_menus)


def provision_user(store: GrantStore, registry: CatalogRegistry, user_id: int, role: Role | str) -> None:
    """Write the role defaults as the user's grants. Does not commit."""
    store.set_user_permissions(user_id, registry.templates.default_permissions(role))
    store.set_user_menus(user_id, registry.templates.default_menus(role))
    logger.info("Provisioned role defaults user_id=%s role=%s", user_id, getattr(role, "value", role))


def update_user_grants(
    db: Session,
    registry: CatalogRegistry,
    user_id: int,
    *,
    permissions: Iterable[str] | None = None,
    menus: Iterable[str] | None = None,
) -> None:
    """Admin edit of one user's grants; takes effect at that user's next login."""
    permissions = None if permissions is None else set(permissions)
    menus = None if menus is None else set(menus)
    check_grant_ids(registry, permissions or (), menus or ())

    store = GrantStore(db)
    try:
        if permissions is not None:
            store.set_user_permissions(user_id, permissions)
        if menus is not None:
            store.set_user_menus(user_id, menus)
        store.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Updated grants user_id=%s", user_id)


@store_call("users_with_role")
def _users_with_role(db: Session, role: Role) -> list[int]:
    return list(db.scalars(select(User.id).where(User.role == role.value).order_by(User.id)))


def apply_role_template(
    db: Session,
    registry: CatalogRegistry,
    role: Role,
    strategy: GrantStrategy,
    permissions: Iterable[str] = (),
    menus: Iterable[str] = (),
) -> BatchResult:
    """
    Batch-update the grants of every user holding ``role``.

    All users are updated in one transaction; any failure leaves every
    user's grants as they were.
    """

    permissions = set(permissions)
    menus = set(menus)
    check_grant_ids(registry, permissions, menus)

    store = GrantStore(db)
    user_ids = _users_with_role(db, role)
    try:
        for user_id in user_ids:
            if strategy is GrantStrategy.RESET:
                new_perms = registry.templates.default_permissions(role)
                new_menus = registry.templates.default_menus(role)
            elif strategy is GrantStrategy.MERGE:
                # Inactive users are included; their stored rows are merged too.
                current_perms, current_menus = store.get_grant_rows(user_id)
                new_perms = permissions | current_perms
                new_menus = menus | current_menus
            else:
                new_perms, new_menus = permissions, menus
            store.set_user_permissions(user_id, new_perms)
            store.set_user_menus(user_id, new_menus)
        store.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Applied role grants role=%s strategy=%s users=%d", role.value, strategy.value, len(user_ids))
    return BatchResult(role=role, strategy=strategy, user_ids=tuple(user_ids))
