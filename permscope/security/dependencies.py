from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status

from permscope.catalog.registry import CatalogRegistry
from permscope.errors import SessionNotFound

from .auth import extract_session_token
from .context import AuthorizationContext
from .engine import can_access_menu, has_all_permissions, has_any_permission, is_admin
from .sessions import SessionCache


def get_registry(request: Request) -> CatalogRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Catalog not loaded. Did app startup run?")
    return registry


def get_session_cache(request: Request) -> SessionCache:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        raise RuntimeError("Session cache not initialised. Did app startup run?")
    return sessions


def get_session_token(request: Request) -> str:
    token = extract_session_token(request)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return token


def get_authz_context(
    request: Request,
    token: str = Depends(get_session_token),
    sessions: SessionCache = Depends(get_session_cache),
) -> AuthorizationContext:
    """
    The cached context of the calling session.

    Served from the session cache; grant edits made after login are not
    visible here until the user logs in again.
    """

    try:
        ctx = sessions.get(token)
    except SessionNotFound as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session") from exc
    request.state.authz = ctx
    return ctx


def require_permission(*permission_ids: str, require_all: bool = False) -> Callable[..., AuthorizationContext]:
    """
    Dependency factory: 403 unless the actor holds any (or all) of ``permission_ids``.

    Example:
        @router.get("/customers/export")
        def export(ctx = Depends(require_permission("customer_export"))): ...
    """

    check = has_all_permissions if require_all else has_any_permission

    def dependency(ctx: AuthorizationContext = Depends(get_authz_context)) -> AuthorizationContext:
        if not check(ctx, permission_ids):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required {'all' if require_all else 'one'} of: {sorted(permission_ids)}",
            )
        return ctx

    return dependency


def require_menu(feature_id: str) -> Callable[..., AuthorizationContext]:
    def dependency(
        ctx: AuthorizationContext = Depends(get_authz_context),
        registry: CatalogRegistry = Depends(get_registry),
    ) -> AuthorizationContext:
        if not can_access_menu(ctx, feature_id, registry.menus):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"No access to {feature_id!r}")
        return ctx

    return dependency


def require_admin() -> Callable[..., AuthorizationContext]:
    def dependency(ctx: AuthorizationContext = Depends(get_authz_context)) -> AuthorizationContext:
        if not is_admin(ctx):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator role required")
        return ctx

    return dependency
