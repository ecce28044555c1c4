"""
Static catalogs: permissions, menu features, feature usage map, role templates.

Loaded once from YAML with ``load_catalog`` and shared as a ``CatalogRegistry``.
"""

from .loader import CatalogConfigError, load_catalog, parse_catalog
from .registry import CatalogRegistry, FeatureUsageMap, MenuCatalog, PermissionCatalog, RoleTemplates
from .types import FeaturePermissionMapping, MenuFeature, Permission, PermissionCategory, Role

__all__ = [
    "CatalogConfigError",
    "CatalogRegistry",
    "FeaturePermissionMapping",
    "FeatureUsageMap",
    "MenuCatalog",
    "MenuFeature",
    "Permission",
    "PermissionCatalog",
    "PermissionCategory",
    "Role",
    "RoleTemplates",
    "load_catalog",
    "parse_catalog",
]
