"""
Salesperson performance aggregation.

``aggregate_performance`` computes the canonical, unfiltered figures across
every salesperson. ``scope_performance`` narrows them for the viewer and
recomputes the totals from what is left, so a scoped viewer never sees a
company-wide total.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from permscope.models.business import TrainingParticipant
from permscope.scoping.filters import NameResolver, filter_by_department_name, scope_by_department
from permscope.security.context import AuthorizationContext
from permscope.store.grants import GrantStore, store_call

logger = logging.getLogger(__name__)

UNASSIGNED_DEPARTMENT = "Unassigned"


@dataclass(frozen=True)
class PerformanceRow:
    salesperson_id: int
    name: str
    department_id: int | None
    department_name: str
    revenue: Decimal
    completed_customers: int
    course_count: int


@dataclass(frozen=True)
class PerformanceSummary:
    rows: tuple[PerformanceRow, ...]
    total_revenue: Decimal
    total_participants: int


@dataclass(frozen=True)
class DepartmentPerformance:
    department_id: int | None
    name: str
    revenue: Decimal
    participants: int
    salesperson_count: int


def summarize(rows: Iterable[PerformanceRow]) -> PerformanceSummary:
    rows = tuple(rows)
    return PerformanceSummary(
        rows=rows,
        total_revenue=sum((r.revenue for r in rows), Decimal("0")),
        total_participants=sum(r.completed_customers for r in rows),
    )


def participant_revenue(participant: TrainingParticipant) -> Decimal:
    """Actual (discounted) price, falling back to the payment amount."""
    amount = participant.actual_price or participant.payment_amount
    return Decimal(amount) if amount else Decimal("0")


@store_call("load_participants")
def _load_participants(db: Session, start: date | None, end: date | None) -> list[TrainingParticipant]:
    stmt = select(TrainingParticipant).order_by(TrainingParticipant.id)
    if start is not None:
        stmt = stmt.where(TrainingParticipant.registration_date >= start)
    if end is not None:
        stmt = stmt.where(TrainingParticipant.registration_date <= end)
    return list(db.scalars(stmt))


def aggregate_performance(db: Session, start: date | None = None, end: date | None = None) -> PerformanceSummary:
    """Unfiltered per-salesperson figures for participants registered in [start, end]."""

    store = GrantStore(db)
    participants = _load_participants(db, start, end)
    salespeople = store.resolve_users_by_names(p.salesperson_name for p in participants if p.salesperson_name)
    departments = store.department_names()

    revenue: dict[int, Decimal] = {}
    customers: dict[int, int] = {}
    courses: dict[int, set[str]] = {}
    skipped = 0
    for participant in participants:
        user = salespeople.get(participant.salesperson_name or "")
        if user is None:
            skipped += 1
            continue
        revenue[user.id] = revenue.get(user.id, Decimal("0")) + participant_revenue(participant)
        customers[user.id] = customers.get(user.id, 0) + 1
        if participant.session_name:
            courses.setdefault(user.id, set()).add(participant.session_name)

    if skipped:
        logger.info("Performance: skipped %d participants without a resolvable salesperson", skipped)

    rows = [
        PerformanceRow(
            salesperson_id=user.id,
            name=user.display_name,
            department_id=user.department_id,
            department_name=departments.get(user.department_id, UNASSIGNED_DEPARTMENT),
            revenue=revenue[user.id],
            completed_customers=customers[user.id],
            course_count=len(courses.get(user.id, ())),
        )
        for user in sorted(salespeople.values(), key=lambda u: u.id)
        if user.id in revenue
    ]
    return summarize(rows)


def scope_performance(
    ctx: AuthorizationContext,
    summary: PerformanceSummary,
    department_name: str | None = None,
    resolver: NameResolver | None = None,
) -> PerformanceSummary:
    """
    Narrow ``summary`` for ``ctx`` and recompute its totals.

    An explicit ``department_name`` is applied on top of the department
    rule and yields nothing when it does not resolve.
    """

    rows = scope_by_department(ctx, summary.rows, lambda r: r.department_id)
    if department_name:
        if resolver is None:
            raise ValueError("a resolver is required to filter by department name")
        rows = filter_by_department_name(resolver, department_name, rows, lambda r: r.department_id)
    if len(rows) == len(summary.rows):
        return summary
    return summarize(rows)


def department_rollup(summary: PerformanceSummary) -> list[DepartmentPerformance]:
    """Group performance rows per department, highest revenue first."""
    by_department: dict[int | None, DepartmentPerformance] = {}
    for row in summary.rows:
        current = by_department.get(row.department_id)
        if current is None:
            by_department[row.department_id] = DepartmentPerformance(
                department_id=row.department_id,
                name=row.department_name,
                revenue=row.revenue,
                participants=row.completed_customers,
                salesperson_count=1,
            )
            continue
        by_department[row.department_id] = replace(
            current,
            revenue=current.revenue + row.revenue,
            participants=current.participants + row.completed_customers,
            salesperson_count=current.salesperson_count + 1,
        )
    return sorted(by_department.values(), key=lambda d: d.revenue, reverse=True)
