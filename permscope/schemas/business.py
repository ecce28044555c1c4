from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str | None
    company: str | None
    salesperson_id: int | None
    salesperson_name: str | None
    created_at: datetime


class PerformanceRowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    salesperson_id: int
    name: str
    department_id: int | None
    department_name: str
    revenue: float
    completed_customers: int
    course_count: int


class DepartmentPerformanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    department_id: int | None
    name: str
    revenue: float
    participants: int
    salesperson_count: int


class PerformanceOut(BaseModel):
    total_revenue: float
    total_participants: int
    salespeople: list[PerformanceRowOut]
    departments: list[DepartmentPerformanceOut]
