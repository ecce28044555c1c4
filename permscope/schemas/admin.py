from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from permscope.catalog.types import Role
from permscope.services.provisioning import GrantStrategy


class RoleChangeIn(BaseModel):
    role: Role
    department_id: int | None = None
    member_ids: list[int] = Field(default_factory=list)


class TransitionOut(BaseModel):
    user_id: int
    old_role: str
    new_role: str
    department_id: int | None
    member_ids: list[int]


class PermissionGrantsIn(BaseModel):
    permissions: list[str]


class MenuGrantsIn(BaseModel):
    menus: list[str]


class RoleGrantsIn(BaseModel):
    strategy: GrantStrategy = GrantStrategy.MERGE
    permissions: list[str] = Field(default_factory=list)
    menus: list[str] = Field(default_factory=list)


class BatchResultOut(BaseModel):
    role: str
    strategy: str
    updated: int
    user_ids: list[int]


class GrantIssueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issue_type: str
    item_id: str
    details: str


class UserGrantIssuesOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    display_name: str
    role: str
    issues: list[GrantIssueOut]


class DiagnosticReportOut(BaseModel):
    total_users: int
    issue_count: int
    issues_by_type: dict[str, int]
    issues_by_role: dict[str, int]
    users: list[UserGrantIssuesOut]
