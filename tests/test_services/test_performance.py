"""Tests for performance aggregation and scoping."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from permscope.catalog import Role
from permscope.catalog import ids
from permscope.models.business import TrainingParticipant
from permscope.services.performance import (
    UNASSIGNED_DEPARTMENT,
    PerformanceRow,
    aggregate_performance,
    department_rollup,
    participant_revenue,
    scope_performance,
    summarize,
)
from permscope.store.grants import GrantStore


def _row(salesperson_id: int, department_id: int | None, revenue: str, customers: int = 1) -> PerformanceRow:
    return PerformanceRow(
        salesperson_id=salesperson_id,
        name=f"Seller {salesperson_id}",
        department_id=department_id,
        department_name=f"Dept {department_id}",
        revenue=Decimal(revenue),
        completed_customers=customers,
        course_count=1,
    )


@pytest.fixture
def summary():
    return summarize(
        [
            _row(1, 5, "100.00", 2),
            _row(2, 6, "250.00", 3),
            _row(3, 7, "400.00", 1),
            _row(4, 5, "50.00", 1),
        ]
    )


class FakeResolver:
    def __init__(self, departments):
        self.departments = departments

    def resolve_department_id_by_name(self, name):
        return self.departments.get(name)

    def resolve_user_id_by_name(self, name):
        return None


def test_restricted_manager_totals_cover_only_own_department(context_factory, summary):
    ctx = context_factory(Role.MANAGER, department_id=5)
    scoped = scope_performance(ctx, summary)

    assert [r.salesperson_id for r in scoped.rows] == [1, 4]
    assert scoped.total_revenue == Decimal("150.00")
    assert scoped.total_participants == 3


def test_view_all_manager_gets_unchanged_totals(context_factory, summary):
    ctx = context_factory(Role.MANAGER, department_id=5, permissions=(ids.PERFORMANCE_VIEW_ALL_DEPARTMENTS,))
    scoped = scope_performance(ctx, summary)

    assert scoped == summary
    assert scoped.total_revenue == Decimal("800.00")
    assert scoped.total_participants == 7


def test_department_name_filter_on_top_of_scoping(context_factory, summary):
    resolver = FakeResolver({"Dept 6": 6, "Dept 5": 5})
    admin = context_factory(Role.ADMIN)
    manager = context_factory(Role.MANAGER, department_id=5)

    assert scope_performance(admin, summary, "Dept 6", resolver).total_revenue == Decimal("250.00")
    assert scope_performance(manager, summary, "Dept 6", resolver).rows == ()
    assert scope_performance(manager, summary, "Dept 5", resolver).total_revenue == Decimal("150.00")


def test_unresolved_department_name_is_empty_for_admin(context_factory, summary):
    scoped = scope_performance(context_factory(Role.ADMIN), summary, "Atlantis", FakeResolver({}))
    assert scoped.rows == ()
    assert scoped.total_revenue == Decimal("0")
    assert scoped.total_participants == 0


def test_department_name_requires_resolver(context_factory, summary):
    with pytest.raises(ValueError):
        scope_performance(context_factory(Role.ADMIN), summary, "Dept 5")


def test_department_rollup_orders_by_revenue(summary):
    rollup = department_rollup(summary)
    assert [(d.department_id, d.revenue, d.participants, d.salesperson_count) for d in rollup] == [
        (7, Decimal("400.00"), 1, 1),
        (6, Decimal("250.00"), 3, 1),
        (5, Decimal("150.00"), 3, 2),
    ]


def test_participant_revenue_prefers_actual_price():
    assert participant_revenue(TrainingParticipant(actual_price=Decimal("80"), payment_amount=Decimal("100"))) == Decimal("80")
    assert participant_revenue(TrainingParticipant(payment_amount=Decimal("100"))) == Decimal("100")
    assert participant_revenue(TrainingParticipant()) == Decimal("0")


def test_aggregate_performance_from_participants(db_session, make_department, make_user):
    east = make_department("East Sales", "EAST")
    sam = make_user("Sam Seller", Role.SALESPERSON, east)
    nia = make_user("Nia Nodept", Role.SALESPERSON)
    db_session.add_all(
        [
            TrainingParticipant(
                name="P1",
                session_name="Spring",
                salesperson_name="Sam Seller",
                actual_price=Decimal("100"),
                registration_date=date(2026, 3, 1),
            ),
            TrainingParticipant(
                name="P2",
                session_name="Autumn",
                salesperson_name="Sam Seller",
                payment_amount=Decimal("200"),
                registration_date=date(2026, 9, 1),
            ),
            TrainingParticipant(
                name="P3",
                session_name="Spring",
                salesperson_name="Nia Nodept",
                payment_amount=Decimal("50"),
                registration_date=date(2026, 3, 2),
            ),
            TrainingParticipant(
                name="P4",
                salesperson_name="Nobody Known",
                payment_amount=Decimal("999"),
                registration_date=date(2026, 3, 3),
            ),
        ]
    )
    db_session.commit()

    full = aggregate_performance(db_session)
    by_id = {r.salesperson_id: r for r in full.rows}
    assert by_id[sam].revenue == Decimal("300")
    assert by_id[sam].course_count == 2
    assert by_id[sam].department_name == "East Sales"
    assert by_id[nia].department_name == UNASSIGNED_DEPARTMENT
    assert full.total_revenue == Decimal("350")
    assert full.total_participants == 3

    spring = aggregate_performance(db_session, start=date(2026, 1, 1), end=date(2026, 6, 30))
    assert spring.total_revenue == Decimal("150")


def test_scope_with_store_resolver(db_session, make_department, make_user, context_factory):
    east = make_department("East Sales", "EAST")
    west = make_department("West Sales", "WEST")
    make_user("Sam Seller", Role.SALESPERSON, east)
    make_user("Will West", Role.SALESPERSON, west)
    db_session.add_all(
        [
            TrainingParticipant(name="P1", salesperson_name="Sam Seller", payment_amount=Decimal("10"), registration_date=date(2026, 1, 1)),
            TrainingParticipant(name="P2", salesperson_name="Will West", payment_amount=Decimal("20"), registration_date=date(2026, 1, 1)),
        ]
    )
    db_session.commit()

    full = aggregate_performance(db_session)
    admin = context_factory(Role.ADMIN)
    scoped = scope_performance(admin, full, "West Sales", GrantStore(db_session))
    assert scoped.total_revenue == Decimal("20")
