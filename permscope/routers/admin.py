from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from permscope.catalog.registry import CatalogRegistry
from permscope.catalog.types import Role
from permscope.db.session import get_db
from permscope.schemas.admin import (
    BatchResultOut,
    DiagnosticReportOut,
    MenuGrantsIn,
    PermissionGrantsIn,
    RoleChangeIn,
    RoleGrantsIn,
    TransitionOut,
    UserGrantIssuesOut,
)
from permscope.security.context import AuthorizationContext
from permscope.security.dependencies import get_registry, require_admin
from permscope.services.audit import diagnostic_report
from permscope.services.provisioning import UnknownGrantIds, apply_role_template, update_user_grants
from permscope.services.role_transition import RoleTransitionHandler
from permscope.store.grants import GrantStore

router = APIRouter(prefix="/admin", tags=["admin"])


def get_transition_handler(request: Request) -> RoleTransitionHandler:
    handler = getattr(request.app.state, "transitions", None)
    if handler is None:
        raise RuntimeError("Role transition handler not initialised. Did app startup run?")
    return handler


def _require_user(db: Session, user_id: int) -> None:
    if GrantStore(db).get_user(user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.put("/users/{user_id}/role", response_model=TransitionOut)
def change_role(
    user_id: int,
    body: RoleChangeIn,
    _admin: AuthorizationContext = Depends(require_admin()),
    handler: RoleTransitionHandler = Depends(get_transition_handler),
    db: Session = Depends(get_db),
) -> TransitionOut:
    result = handler.change_role(db, user_id, body.role, body.department_id, body.member_ids)
    return TransitionOut(
        user_id=result.user_id,
        old_role=getattr(result.old_role, "value", result.old_role),
        new_role=result.new_role.value,
        department_id=result.department_id,
        member_ids=list(result.member_ids),
    )


@router.put("/users/{user_id}/permissions", status_code=status.HTTP_204_NO_CONTENT)
def set_permissions(
    user_id: int,
    body: PermissionGrantsIn,
    _admin: AuthorizationContext = Depends(require_admin()),
    registry: CatalogRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
) -> None:
    _require_user(db, user_id)
    try:
        update_user_grants(db, registry, user_id, permissions=body.permissions)
    except UnknownGrantIds as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.put("/users/{user_id}/menus", status_code=status.HTTP_204_NO_CONTENT)
def set_menus(
    user_id: int,
    body: MenuGrantsIn,
    _admin: AuthorizationContext = Depends(require_admin()),
    registry: CatalogRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
) -> None:
    _require_user(db, user_id)
    try:
        update_user_grants(db, registry, user_id, menus=body.menus)
    except UnknownGrantIds as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.post("/roles/{role}/grants", response_model=BatchResultOut)
def set_role_grants(
    role: Role,
    body: RoleGrantsIn,
    _admin: AuthorizationContext = Depends(require_admin()),
    registry: CatalogRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
) -> BatchResultOut:
    try:
        result = apply_role_template(db, registry, role, body.strategy, body.permissions, body.menus)
    except UnknownGrantIds as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return BatchResultOut(
        role=result.role.value,
        strategy=result.strategy.value,
        updated=result.updated,
        user_ids=list(result.user_ids),
    )


@router.get("/grant-audit", response_model=DiagnosticReportOut)
def grant_audit(
    _admin: AuthorizationContext = Depends(require_admin()),
    registry: CatalogRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
) -> DiagnosticReportOut:
    report = diagnostic_report(db, registry)
    return DiagnosticReportOut(
        total_users=report.total_users,
        issue_count=report.issue_count,
        issues_by_type=dict(report.issues_by_type),
        issues_by_role=dict(report.issues_by_role),
        users=[UserGrantIssuesOut.model_validate(u) for u in report.users],
    )
