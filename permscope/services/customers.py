"""
Customer listing and export with ownership / department scoping.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from permscope.catalog import ids
from permscope.errors import PermissionDenied
from permscope.models.business import Customer
from permscope.models.org import User
from permscope.scoping.filters import (
    filter_by_department_name,
    filter_by_owner_name,
    scope_by_department,
    scope_by_owner,
)
from permscope.security.context import AuthorizationContext
from permscope.security.engine import can_view_record_owned_by, has_permission
from permscope.store.grants import GrantStore, store_call

logger = logging.getLogger(__name__)


@store_call("load_customers")
def _load_customers(db: Session) -> list[Customer]:
    return list(db.scalars(select(Customer).order_by(Customer.id)))


@store_call("owner_departments")
def _owner_departments(db: Session) -> dict[int, int | None]:
    """Salesperson id -> department id, used to place a customer in a department."""
    return {user_id: department_id for user_id, department_id in db.execute(select(User.id, User.department_id))}


def list_visible_customers(ctx: AuthorizationContext, db: Session) -> list[Customer]:
    return [c for c in _load_customers(db) if can_view_record_owned_by(ctx, c.salesperson_id, ids.CUSTOMER_VIEW_ALL)]


def export_customers(
    ctx: AuthorizationContext,
    db: Session,
    department_name: str | None = None,
    salesperson_name: str | None = None,
) -> list[Customer]:
    """
    Rows for a customer export.

    Salespeople without ``customer_view_all`` only get their own customers.
    A requested department or salesperson name that does not resolve gives
    an empty export, whoever asks. A manager restricted to their own
    department gets nothing for another department's name.
    """

    if not has_permission(ctx, ids.CUSTOMER_EXPORT):
        raise PermissionDenied(ids.CUSTOMER_EXPORT)

    store = GrantStore(db)
    rows = scope_by_owner(ctx, _load_customers(db), lambda c: c.salesperson_id)

    if department_name:
        owner_departments = _owner_departments(db)

        def department_of(customer: Customer) -> int | None:
            if customer.salesperson_id is None:
                return None
            return owner_departments.get(customer.salesperson_id)

        rows = filter_by_department_name(store, department_name, rows, department_of)
        rows = scope_by_department(ctx, rows, department_of)

    if salesperson_name:
        rows = filter_by_owner_name(store, salesperson_name, rows, lambda c: c.salesperson_id)

    logger.info(
        "Customer export user_id=%s department=%r salesperson=%r rows=%d",
        ctx.user_id,
        department_name,
        salesperson_name,
        len(rows),
    )
    return rows
