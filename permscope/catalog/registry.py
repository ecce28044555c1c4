"""
Read-only catalog tables.

Four independently maintained tables live here: the permission catalog,
the menu-feature catalog, the feature-permission usage map and the role
default templates. Lookups never raise; an id that is not (or no longer)
in a table resolves to ``None`` / an empty label / an empty set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from .types import FeaturePermissionMapping, MenuFeature, Permission, PermissionCategory, Role


class PermissionCatalog:
    def __init__(self, categories: Iterable[PermissionCategory]) -> None:
        self._categories = tuple(categories)
        self._permissions = tuple(p for c in self._categories for p in c.permissions)
        self._by_id = {p.id: p for p in self._permissions}

    def by_id(self, permission_id: str) -> Permission | None:
        return self._by_id.get(permission_id)

    def label(self, permission_id: str) -> str:
        perm = self._by_id.get(permission_id)
        return perm.name if perm else ""

    def all(self) -> list[Permission]:
        return list(self._permissions)

    def categories(self) -> list[PermissionCategory]:
        return list(self._categories)

    def ids(self) -> frozenset[str]:
        return frozenset(self._by_id)

    def __contains__(self, permission_id: object) -> bool:
        return permission_id in self._by_id

    def __len__(self) -> int:
        return len(self._permissions)


class MenuCatalog:
    def __init__(self, features: Iterable[MenuFeature]) -> None:
        # sorted() is stable: features sharing a display_order keep file order.
        self._features = tuple(sorted(features, key=lambda f: f.display_order))
        self._by_id = {f.id: f for f in self._features}
        self._by_path = {f.path: f for f in self._features}

    def by_id(self, feature_id: str) -> MenuFeature | None:
        return self._by_id.get(feature_id)

    def by_path(self, path: str) -> MenuFeature | None:
        return self._by_path.get(path)

    def label(self, feature_id: str) -> str:
        feature = self._by_id.get(feature_id)
        return feature.name if feature else ""

    def all(self) -> list[MenuFeature]:
        return list(self._features)

    def ids(self) -> frozenset[str]:
        return frozenset(self._by_id)

    def requires_permissions(self, feature_id: str) -> bool:
        feature = self._by_id.get(feature_id)
        return bool(feature and feature.required_permissions)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._by_id


class FeatureUsageMap:
    """Which permissions each feature actually uses (many-to-many)."""

    def __init__(self, mappings: Iterable[FeaturePermissionMapping]) -> None:
        self._mappings = tuple(mappings)
        self._by_feature = {m.feature_id: m for m in self._mappings}

    def permissions_for(self, feature_id: str) -> frozenset[str]:
        mapping = self._by_feature.get(feature_id)
        return mapping.permissions if mapping else frozenset()

    def description_for(self, feature_id: str) -> str:
        mapping = self._by_feature.get(feature_id)
        return mapping.description if mapping else ""

    def features_using(self, permission_id: str) -> list[str]:
        return [m.feature_id for m in self._mappings if permission_id in m.permissions]

    def has_permissions(self, feature_id: str) -> bool:
        return bool(self.permissions_for(feature_id))

    def all(self) -> list[FeaturePermissionMapping]:
        return list(self._mappings)


class RoleTemplates:
    """
    Per-role default grants.

    Consulted when provisioning (account creation, role change) and by the
    drift audit. The decision engine never reads these.
    """

    def __init__(
        self,
        permissions: Mapping[Role, frozenset[str]],
        menus: Mapping[Role, frozenset[str]],
    ) -> None:
        self._permissions = dict(permissions)
        self._menus = dict(menus)

    def default_permissions(self, role: object) -> frozenset[str]:
        parsed = Role.parse(role)
        if parsed is None:
            return frozenset()
        return self._permissions.get(parsed, frozenset())

    def default_menus(self, role: object) -> frozenset[str]:
        parsed = Role.parse(role)
        if parsed is None:
            return frozenset()
        return self._menus.get(parsed, frozenset())


@dataclass(frozen=True)
class CatalogRegistry:
    """Everything loaded from the catalog file, handed around as one object."""

    permissions: PermissionCatalog
    menus: MenuCatalog
    usage: FeatureUsageMap
    templates: RoleTemplates
