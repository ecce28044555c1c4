"""
Row-level data scoping.

Applied to already-computed collections (post-processing), never pushed
into the storage query: aggregates for privileged viewers must be built
from the unfiltered data, and scoped viewers get totals recomputed from
the filtered rows by the caller.

Two rules:
- department scoping for managers without ``performance_view_all_departments``;
- ownership scoping for salespeople without ``customer_view_all``.

Explicit name filters are fail-closed: a department or salesperson name
that does not resolve produces an empty result for every actor,
including admins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Iterable, Protocol, TypeVar

from permscope.catalog import ids
from permscope.catalog.types import Role
from permscope.security.context import AuthorizationContext
from permscope.security.engine import has_permission

logger = logging.getLogger(__name__)

R = TypeVar("R")


class NameResolver(Protocol):
    def resolve_department_id_by_name(self, name: str) -> int | None: ...

    def resolve_user_id_by_name(self, name: str) -> int | None: ...


def department_restriction(ctx: AuthorizationContext) -> tuple[bool, int | None]:
    """Return (restricted, department_id) for the department scoping rule."""
    if ctx.role != Role.MANAGER:
        return False, None
    if has_permission(ctx, ids.PERFORMANCE_VIEW_ALL_DEPARTMENTS):
        return False, None
    return True, ctx.department_id


def owner_restriction(ctx: AuthorizationContext) -> bool:
    return ctx.role == Role.SALESPERSON and not has_permission(ctx, ids.CUSTOMER_VIEW_ALL)


def scope_by_department(
    ctx: AuthorizationContext,
    rows: Iterable[R],
    department_of: Callable[[R], int | None],
) -> list[R]:
    restricted, department_id = department_restriction(ctx)
    rows = list(rows)
    if not restricted:
        return rows
    if department_id is None:
        # A manager with no department sees no department's rows.
        logger.info("Department scoping: manager without department user_id=%s", ctx.user_id)
        return []
    kept = [row for row in rows if department_of(row) == department_id]
    logger.debug(
        "Department scoping user_id=%s department_id=%s kept=%d of %d",
        ctx.user_id,
        department_id,
        len(kept),
        len(rows),
    )
    return kept


def scope_by_owner(
    ctx: AuthorizationContext,
    rows: Iterable[R],
    owner_of: Callable[[R], int | None],
) -> list[R]:
    rows = list(rows)
    if not owner_restriction(ctx):
        return rows
    kept = [row for row in rows if owner_of(row) == ctx.user_id]
    logger.debug("Ownership scoping user_id=%s kept=%d of %d", ctx.user_id, len(kept), len(rows))
    return kept


def filter_by_department_name(
    resolver: NameResolver,
    name: str,
    rows: Iterable[R],
    department_of: Callable[[R], int | None],
) -> list[R]:
    department_id = resolver.resolve_department_id_by_name(name)
    if department_id is None:
        logger.info("Department filter %r did not resolve; returning no rows", name)
        return []
    return [row for row in rows if department_of(row) == department_id]


def filter_by_owner_name(
    resolver: NameResolver,
    name: str,
    rows: Iterable[R],
    owner_of: Callable[[R], int | None],
) -> list[R]:
    owner_id = resolver.resolve_user_id_by_name(name)
    if owner_id is None:
        logger.info("Salesperson filter %r did not resolve; returning no rows", name)
        return []
    return [row for row in rows if owner_of(row) == owner_id]
