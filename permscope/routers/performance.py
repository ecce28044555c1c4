from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from permscope.catalog import ids
from permscope.db.session import get_db
from permscope.schemas.business import DepartmentPerformanceOut, PerformanceOut, PerformanceRowOut
from permscope.security.context import AuthorizationContext
from permscope.security.dependencies import require_permission
from permscope.services.performance import aggregate_performance, department_rollup, scope_performance
from permscope.store.grants import GrantStore

router = APIRouter(tags=["performance"])


@router.get("/performance", response_model=PerformanceOut)
def performance(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    department: str | None = Query(default=None, description="Department name filter"),
    ctx: AuthorizationContext = Depends(require_permission(ids.SALESPERSON_VIEW_PERFORMANCE)),
    db: Session = Depends(get_db),
) -> PerformanceOut:
    summary = aggregate_performance(db, start, end)
    scoped = scope_performance(ctx, summary, department_name=department, resolver=GrantStore(db))
    return PerformanceOut(
        total_revenue=scoped.total_revenue,
        total_participants=scoped.total_participants,
        salespeople=[PerformanceRowOut.model_validate(r) for r in scoped.rows],
        departments=[DepartmentPerformanceOut.model_validate(d) for d in department_rollup(scoped)],
    )
