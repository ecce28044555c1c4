"""
Catalog YAML loader.

Loads the permission catalog, menu features, feature usage map and role
templates once at startup and validates the cross references between them.

Expected shape (simplified):

    catalog:
      categories:
        - id: customer
          name: Customer management
          description: ...
          permissions:
            - {id: customer_view, name: View customers, description: ...}
      menus:
        - {id: dashboard, name: Dashboard, path: /dashboard,
           required_permissions: [], display_order: 1}
      feature_usage:
        - feature: customer_management
          description: ...
          permissions: [customer_view, ...]
      role_defaults:
        admin: {permissions: all, menus: all}
        salesperson: {permissions: [...], menus: [...]}

In strict mode (the default) any dangling reference raises
``CatalogConfigError``. With ``strict=False`` dangling references are
logged and kept; lookups on them resolve to "not found".
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

from . import ids
from .registry import CatalogRegistry, FeatureUsageMap, MenuCatalog, PermissionCatalog, RoleTemplates
from .types import FeaturePermissionMapping, MenuFeature, Permission, PermissionCategory, Role

logger = logging.getLogger(__name__)

_ALL = "all"


class CatalogConfigError(ValueError):
    """Raised when the catalog YAML is malformed or references unknown ids."""


def load_catalog(path: Path, *, strict: bool = True) -> CatalogRegistry:
    """Load and validate the catalog file at ``path``."""

    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "catalog" not in raw:
        raise CatalogConfigError(f"Missing top-level 'catalog' key in config: {path}")

    registry = parse_catalog(raw["catalog"] or {}, strict=strict)
    logger.info(
        "Loaded catalog path=%s permissions=%d menus=%d",
        path,
        len(registry.permissions),
        len(registry.menus.all()),
    )
    return registry


def parse_catalog(raw: dict[str, Any], *, strict: bool = True) -> CatalogRegistry:
    categories_raw = raw.get("categories") or []
    menus_raw = raw.get("menus") or []
    usage_raw = raw.get("feature_usage") or []
    defaults_raw = raw.get("role_defaults") or {}

    if not isinstance(categories_raw, list):
        raise CatalogConfigError("categories must be a list")
    if not isinstance(menus_raw, list):
        raise CatalogConfigError("menus must be a list")
    if not isinstance(usage_raw, list):
        raise CatalogConfigError("feature_usage must be a list when present")
    if not isinstance(defaults_raw, dict):
        raise CatalogConfigError("role_defaults must be a mapping")

    # Parse permission categories
    categories: list[PermissionCategory] = []
    seen_permissions: set[str] = set()
    for cat in categories_raw:
        if not isinstance(cat, dict):
            raise CatalogConfigError("categories entries must be mappings")
        cat_id = _required_str(cat, "id", "category")
        perms: list[Permission] = []
        for perm in cat.get("permissions") or []:
            if not isinstance(perm, dict):
                raise CatalogConfigError(f"category {cat_id!r}.permissions entries must be mappings")
            perm_id = _required_str(perm, "id", f"category {cat_id!r} permission")
            if perm_id in seen_permissions:
                raise CatalogConfigError(f"duplicate permission id {perm_id!r}")
            seen_permissions.add(perm_id)
            perms.append(
                Permission(
                    id=perm_id,
                    name=str(perm.get("name") or perm_id),
                    description=str(perm.get("description") or ""),
                )
            )
        categories.append(
            PermissionCategory(
                id=cat_id,
                name=str(cat.get("name") or cat_id),
                description=str(cat.get("description") or ""),
                permissions=tuple(perms),
            )
        )
    permissions = PermissionCatalog(categories)

    # Parse menu features
    features: list[MenuFeature] = []
    seen_features: set[str] = set()
    for entry in menus_raw:
        if not isinstance(entry, dict):
            raise CatalogConfigError("menus entries must be mappings")
        feature_id = _required_str(entry, "id", "menu")
        if feature_id in seen_features:
            raise CatalogConfigError(f"duplicate menu feature id {feature_id!r}")
        seen_features.add(feature_id)
        required = entry.get("required_permissions") or []
        if not isinstance(required, list):
            raise CatalogConfigError(f"menu {feature_id!r}.required_permissions must be a list")
        try:
            display_order = int(entry.get("display_order", 0))
        except (TypeError, ValueError) as exc:
            raise CatalogConfigError(f"menu {feature_id!r}.display_order must be an integer") from exc
        features.append(
            MenuFeature(
                id=feature_id,
                name=str(entry.get("name") or feature_id),
                path=_required_str(entry, "path", f"menu {feature_id!r}"),
                display_order=display_order,
                required_permissions=tuple(str(p) for p in required),
                icon=str(entry.get("icon") or ""),
                description=str(entry.get("description") or ""),
            )
        )
    menus = MenuCatalog(features)

    # Parse feature usage map
    mappings: list[FeaturePermissionMapping] = []
    for entry in usage_raw:
        if not isinstance(entry, dict):
            raise CatalogConfigError("feature_usage entries must be mappings")
        feature_id = _required_str(entry, "feature", "feature_usage")
        used = entry.get("permissions") or []
        if not isinstance(used, list):
            raise CatalogConfigError(f"feature_usage {feature_id!r}.permissions must be a list")
        mappings.append(
            FeaturePermissionMapping(
                feature_id=feature_id,
                permissions=frozenset(str(p) for p in used),
                description=str(entry.get("description") or ""),
            )
        )
    usage = FeatureUsageMap(mappings)

    # Parse role templates
    default_perms: dict[Role, frozenset[str]] = {}
    default_menus: dict[Role, frozenset[str]] = {}
    for role_name, role_val in defaults_raw.items():
        role = Role.parse(role_name)
        if role is None:
            raise CatalogConfigError(f"role_defaults references unknown role {role_name!r}")
        if not isinstance(role_val, dict):
            raise CatalogConfigError(f"role_defaults {role_name!r} must be a mapping")
        default_perms[role] = _id_set(role_val.get("permissions"), permissions.ids(), f"role {role_name!r}.permissions")
        default_menus[role] = _id_set(role_val.get("menus"), menus.ids(), f"role {role_name!r}.menus")
    templates = RoleTemplates(default_perms, default_menus)

    # Cross references
    problems: list[str] = []
    for feature in features:
        problems.extend(
            f"menu {feature.id!r} requires unknown permission {p!r}"
            for p in _unknown(feature.required_permissions, permissions.ids())
        )
    for mapping in mappings:
        if mapping.feature_id not in menus:
            problems.append(f"feature_usage references unknown feature {mapping.feature_id!r}")
        problems.extend(
            f"feature_usage {mapping.feature_id!r} references unknown permission {p!r}"
            for p in _unknown(mapping.permissions, permissions.ids())
        )
    for role in default_perms:
        problems.extend(
            f"role {role.value!r} default permission {p!r} is not in the catalog"
            for p in _unknown(default_perms[role], permissions.ids())
        )
        problems.extend(
            f"role {role.value!r} default menu {m!r} is not in the catalog"
            for m in _unknown(default_menus[role], menus.ids())
        )
    problems.extend(f"registered permission id {p!r} is not in the catalog" for p in _unknown(ids.PERMISSION_IDS, permissions.ids()))
    problems.extend(f"registered menu id {m!r} is not in the catalog" for m in _unknown(ids.MENU_IDS, menus.ids()))

    if problems:
        if strict:
            raise CatalogConfigError("; ".join(problems))
        for problem in problems:
            logger.warning("Catalog: %s", problem)

    return CatalogRegistry(permissions=permissions, menus=menus, usage=usage, templates=templates)


def _required_str(entry: dict[str, Any], key: str, where: str) -> str:
    value = str(entry.get(key) or "").strip()
    if not value:
        raise CatalogConfigError(f"{where} requires non-empty {key!r}")
    return value


def _id_set(value: Any, known: frozenset[str], where: str) -> frozenset[str]:
    """Parse a template list; the literal ``all`` expands to every known id."""
    if value is None:
        return frozenset()
    if value == _ALL:
        return known
    if not isinstance(value, list):
        raise CatalogConfigError(f"{where} must be a list or {_ALL!r}")
    return frozenset(str(v) for v in value)


def _unknown(values: Iterable[str], known: frozenset[str]) -> list[str]:
    return sorted(set(values).difference(known))
