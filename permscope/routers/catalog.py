from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from permscope.catalog.registry import CatalogRegistry
from permscope.catalog.types import MenuFeature, PermissionCategory
from permscope.schemas.security import FeatureUsageOut, MenuFeatureOut, PermissionCategoryOut
from permscope.security.context import AuthorizationContext
from permscope.security.dependencies import get_authz_context, get_registry
from permscope.security.engine import visible_menus

router = APIRouter(tags=["catalog"])


@router.get("/navigation", response_model=list[MenuFeatureOut])
def navigation(
    ctx: AuthorizationContext = Depends(get_authz_context),
    registry: CatalogRegistry = Depends(get_registry),
) -> list[MenuFeature]:
    return visible_menus(ctx, registry.menus)


@router.get("/catalog/permissions", response_model=list[PermissionCategoryOut])
def permission_categories(
    _ctx: AuthorizationContext = Depends(get_authz_context),
    registry: CatalogRegistry = Depends(get_registry),
) -> list[PermissionCategory]:
    return registry.permissions.categories()


@router.get("/catalog/menus", response_model=list[MenuFeatureOut])
def menu_features(
    _ctx: AuthorizationContext = Depends(get_authz_context),
    registry: CatalogRegistry = Depends(get_registry),
) -> list[MenuFeature]:
    return registry.menus.all()


@router.get("/catalog/features/{feature_id}/permissions", response_model=FeatureUsageOut)
def feature_usage(
    feature_id: str,
    _ctx: AuthorizationContext = Depends(get_authz_context),
    registry: CatalogRegistry = Depends(get_registry),
) -> FeatureUsageOut:
    if feature_id not in registry.menus:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feature not found")
    return FeatureUsageOut(
        feature_id=feature_id,
        description=registry.usage.description_for(feature_id),
        permissions=sorted(registry.usage.permissions_for(feature_id)),
    )
