"""Tests for row-level department / ownership scoping."""
from __future__ import annotations

from dataclasses import dataclass

from permscope.catalog import Role
from permscope.catalog import ids
from permscope.scoping.filters import (
    department_restriction,
    filter_by_department_name,
    filter_by_owner_name,
    owner_restriction,
    scope_by_department,
    scope_by_owner,
)


@dataclass(frozen=True)
class Row:
    key: str
    department_id: int | None
    owner_id: int | None


ROWS = [Row("a", 5, 10), Row("b", 6, 11), Row("c", 7, 12), Row("d", 5, 13), Row("e", None, None)]


class FakeResolver:
    def __init__(self, departments=None, users=None):
        self.departments = departments or {}
        self.users = users or {}

    def resolve_department_id_by_name(self, name):
        return self.departments.get(name)

    def resolve_user_id_by_name(self, name):
        return self.users.get(name)


def _dept(row: Row) -> int | None:
    return row.department_id


def _owner(row: Row) -> int | None:
    return row.owner_id


def test_manager_sees_only_own_department(context_factory):
    ctx = context_factory(Role.MANAGER, department_id=5)
    assert department_restriction(ctx) == (True, 5)
    assert [r.key for r in scope_by_department(ctx, ROWS, _dept)] == ["a", "d"]


def test_manager_with_view_all_sees_everything(context_factory):
    ctx = context_factory(Role.MANAGER, department_id=5, permissions=(ids.PERFORMANCE_VIEW_ALL_DEPARTMENTS,))
    assert department_restriction(ctx) == (False, None)
    assert scope_by_department(ctx, ROWS, _dept) == ROWS


def test_manager_without_department_sees_nothing(context_factory):
    ctx = context_factory(Role.MANAGER)
    assert scope_by_department(ctx, ROWS, _dept) == []


def test_department_rule_does_not_apply_to_other_roles(context_factory):
    for role in (Role.ADMIN, Role.SALESPERSON, Role.EXPERT):
        assert scope_by_department(context_factory(role, department_id=5), ROWS, _dept) == ROWS


def test_salesperson_sees_only_own_rows(context_factory):
    ctx = context_factory(Role.SALESPERSON, user_id=11)
    assert owner_restriction(ctx)
    assert [r.key for r in scope_by_owner(ctx, ROWS, _owner)] == ["b"]


def test_salesperson_with_view_all_is_not_restricted(context_factory):
    ctx = context_factory(Role.SALESPERSON, user_id=11, permissions=(ids.CUSTOMER_VIEW_ALL,))
    assert not owner_restriction(ctx)
    assert scope_by_owner(ctx, ROWS, _owner) == ROWS


def test_owner_rule_does_not_apply_to_managers(context_factory):
    assert scope_by_owner(context_factory(Role.MANAGER, user_id=11), ROWS, _owner) == ROWS


def test_department_name_filter_resolves_to_id():
    resolver = FakeResolver(departments={"East": 5})
    assert [r.key for r in filter_by_department_name(resolver, "East", ROWS, _dept)] == ["a", "d"]


def test_unresolved_department_name_gives_nothing():
    assert filter_by_department_name(FakeResolver(), "Nowhere", ROWS, _dept) == []


def test_owner_name_filter():
    resolver = FakeResolver(users={"Sam": 12})
    assert [r.key for r in filter_by_owner_name(resolver, "Sam", ROWS, _owner)] == ["c"]
    assert filter_by_owner_name(resolver, "Nobody", ROWS, _owner) == []
