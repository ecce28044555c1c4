from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str


class PermissionCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    permissions: list[PermissionOut]


class MenuFeatureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    path: str
    icon: str
    description: str
    required_permissions: list[str]
    display_order: int


class FeatureUsageOut(BaseModel):
    feature_id: str
    description: str
    permissions: list[str]


class LoginIn(BaseModel):
    user_id: int


class SessionOut(BaseModel):
    token: str
    user_id: int
    role: str


class ContextOut(BaseModel):
    user_id: int
    role: str
    department_id: int | None
    display_name: str
    granted_permissions: list[str]
    granted_menus: list[str]
