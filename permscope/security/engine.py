"""
Decision engine.

Pure functions over an ``AuthorizationContext``: no I/O, no caching, no
access to role templates. Only the per-user grants in the context decide.

The admin override is applied once, by ``admin_override``, to every
decision function that honours it.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Iterable, Mapping, TypeVar

from permscope.catalog import ids
from permscope.catalog.registry import MenuCatalog
from permscope.catalog.types import MenuFeature, Role

from .context import AuthorizationContext

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., bool])

# Grants a role holds regardless of its stored grant rows. Consulted only by
# has_permission; kept for salespeople created before the grant existed.
LEGACY_CARVE_OUTS: Mapping[Role, frozenset[str]] = {
    Role.SALESPERSON: frozenset({ids.TRAINING_ADD_CUSTOMER}),
}


def is_admin(ctx: AuthorizationContext) -> bool:
    return ctx.role == Role.ADMIN


def admin_override(fn: F) -> F:
    """Answer ``True`` for admins before the wrapped decision runs."""

    @functools.wraps(fn)
    def wrapper(ctx: AuthorizationContext, *args, **kwargs) -> bool:
        if is_admin(ctx):
            return True
        return fn(ctx, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


@admin_override
def has_permission(ctx: AuthorizationContext, permission_id: str) -> bool:
    role = Role.parse(ctx.role)
    if role is not None and permission_id in LEGACY_CARVE_OUTS.get(role, frozenset()):
        return True
    return permission_id in ctx.granted_permissions


@admin_override
def has_any_permission(ctx: AuthorizationContext, permission_ids: Iterable[str]) -> bool:
    return any(p in ctx.granted_permissions for p in permission_ids)


@admin_override
def has_all_permissions(ctx: AuthorizationContext, permission_ids: Iterable[str]) -> bool:
    return all(p in ctx.granted_permissions for p in permission_ids)


@admin_override
def can_access_menu(ctx: AuthorizationContext, feature_id: str, menus: MenuCatalog) -> bool:
    """
    Visible iff the feature is granted, exists in the catalog, and (it has
    no required permissions or the actor holds at least one of them).
    """

    if feature_id not in ctx.granted_menus:
        return False
    feature = menus.by_id(feature_id)
    if feature is None:
        logger.debug("Menu: granted feature %r is not in the catalog user_id=%s", feature_id, ctx.user_id)
        return False
    return _feature_preconditions_met(ctx, feature)


@admin_override
def can_view_record_owned_by(
    ctx: AuthorizationContext,
    owner_id: int | None,
    all_view_permission: str = ids.CUSTOMER_VIEW_ALL,
) -> bool:
    """Ownership check keyed on the owner's user id; unowned records need the all-view grant."""
    if has_permission(ctx, all_view_permission):
        return True
    return owner_id is not None and owner_id == ctx.user_id


def visible_menus(ctx: AuthorizationContext, menus: MenuCatalog) -> list[MenuFeature]:
    """Menu features the actor may navigate to, in display order."""
    return [f for f in menus.all() if can_access_menu(ctx, f.id, menus)]


def _feature_preconditions_met(ctx: AuthorizationContext, feature: MenuFeature) -> bool:
    if not feature.required_permissions:
        return True
    return has_any_permission(ctx, feature.required_permissions)
