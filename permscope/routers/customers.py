from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from permscope.catalog import ids
from permscope.db.session import get_db
from permscope.models.business import Customer
from permscope.schemas.business import CustomerOut
from permscope.security.context import AuthorizationContext
from permscope.security.dependencies import require_menu, require_permission
from permscope.services.customers import export_customers, list_visible_customers

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerOut])
def list_customers(
    ctx: AuthorizationContext = Depends(require_menu(ids.MENU_CUSTOMER_MANAGEMENT)),
    db: Session = Depends(get_db),
) -> list[Customer]:
    return list_visible_customers(ctx, db)


@router.get("/export", response_model=list[CustomerOut])
def export(
    department: str | None = Query(default=None, description="Department name filter"),
    salesperson: str | None = Query(default=None, description="Salesperson name filter"),
    ctx: AuthorizationContext = Depends(require_permission(ids.CUSTOMER_EXPORT)),
    db: Session = Depends(get_db),
) -> list[Customer]:
    # Unknown department / salesperson names give an empty export, never an unfiltered one.
    return export_customers(ctx, db, department_name=department, salesperson_name=salesperson)
