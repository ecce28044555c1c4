"""Tests for the catalog YAML loader."""
from __future__ import annotations

from pathlib import Path

import pytest

from permscope.catalog import CatalogConfigError, Role, load_catalog, parse_catalog
from permscope.catalog import ids


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def _minimal(**overrides) -> dict:
    raw = {
        "categories": [
            {
                "id": "customer",
                "name": "Customers",
                "permissions": [{"id": p, "name": p} for p in sorted(ids.PERMISSION_IDS)],
            }
        ],
        "menus": [
            {"id": m, "name": m, "path": f"/{m}", "display_order": i, "required_permissions": []}
            for i, m in enumerate(sorted(ids.MENU_IDS))
        ],
        "feature_usage": [],
        "role_defaults": {"admin": {"permissions": "all", "menus": "all"}},
    }
    raw.update(overrides)
    return raw


def test_bundled_catalog_loads(registry):
    assert ids.PERMISSION_IDS <= registry.permissions.ids()
    assert ids.MENU_IDS <= registry.menus.ids()
    assert registry.templates.default_permissions(Role.ADMIN) == registry.permissions.ids()
    assert registry.templates.default_menus(Role.ADMIN) == registry.menus.ids()


def test_bundled_catalog_usage_map_references_known_features(registry):
    for mapping in registry.usage.all():
        assert mapping.feature_id in registry.menus
        assert mapping.permissions <= registry.permissions.ids()


def test_missing_catalog_key_raises(tmp_path):
    path = _write(tmp_path, "menus: []\n")
    with pytest.raises(CatalogConfigError, match="Missing top-level 'catalog' key"):
        load_catalog(path)


def test_load_catalog_from_file(tmp_path):
    text = """
catalog:
  categories:
    - id: customer
      name: Customers
      permissions:
        - {id: customer_view, name: View customers}
        - {id: customer_view_all, name: View all customers}
        - {id: customer_export, name: Export customers}
        - {id: training_add_customer, name: Add training customers}
        - {id: salesperson_view_performance, name: View performance}
        - {id: performance_view_all_departments, name: All departments}
        - {id: permission_manage, name: Manage permissions}
  menus:
    - {id: customer_management, name: Customers, path: /customers, required_permissions: [customer_view], display_order: 2}
    - {id: sales_tracking, name: Sales, path: /sales, display_order: 1}
    - {id: permission_management, name: Permissions, path: /perms, display_order: 3}
  role_defaults:
    salesperson:
      permissions: [customer_view]
      menus: [customer_management]
"""
    registry = load_catalog(_write(tmp_path, text))
    assert [f.id for f in registry.menus.all()] == ["sales_tracking", "customer_management", "permission_management"]
    assert registry.templates.default_permissions("salesperson") == frozenset({"customer_view"})
    assert registry.templates.default_menus(Role.MANAGER) == frozenset()


def test_duplicate_permission_id_raises():
    raw = _minimal()
    raw["categories"].append({"id": "other", "permissions": [{"id": ids.CUSTOMER_VIEW}]})
    with pytest.raises(CatalogConfigError, match="duplicate permission id"):
        parse_catalog(raw)


def test_duplicate_menu_id_raises():
    raw = _minimal()
    raw["menus"].append({"id": ids.MENU_SALES_TRACKING, "path": "/again"})
    with pytest.raises(CatalogConfigError, match="duplicate menu feature id"):
        parse_catalog(raw)


def test_menu_requires_path():
    raw = _minimal()
    raw["menus"].append({"id": "reports", "name": "Reports"})
    with pytest.raises(CatalogConfigError, match="requires non-empty 'path'"):
        parse_catalog(raw)


def test_unknown_role_in_defaults_raises():
    raw = _minimal(role_defaults={"owner": {"permissions": []}})
    with pytest.raises(CatalogConfigError, match="unknown role 'owner'"):
        parse_catalog(raw)


def test_dangling_references_raise_in_strict_mode():
    raw = _minimal(
        feature_usage=[{"feature": "ghost_feature", "permissions": ["ghost_perm"]}],
        role_defaults={"salesperson": {"permissions": ["ghost_perm"], "menus": []}},
    )
    with pytest.raises(CatalogConfigError) as exc_info:
        parse_catalog(raw, strict=True)

    message = str(exc_info.value)
    assert "unknown feature 'ghost_feature'" in message
    assert "references unknown permission 'ghost_perm'" in message
    assert "default permission 'ghost_perm'" in message


def test_dangling_references_are_kept_when_not_strict(caplog):
    raw = _minimal(feature_usage=[{"feature": "ghost_feature", "permissions": [ids.CUSTOMER_VIEW]}])
    registry = parse_catalog(raw, strict=False)

    assert "ghost_feature" not in registry.menus
    assert registry.usage.permissions_for("ghost_feature") == frozenset({ids.CUSTOMER_VIEW})
    assert any("ghost_feature" in r.getMessage() for r in caplog.records)


def test_registered_ids_must_exist():
    raw = _minimal()
    raw["categories"][0]["permissions"] = [{"id": ids.CUSTOMER_VIEW}]
    with pytest.raises(CatalogConfigError, match="registered permission id"):
        parse_catalog(raw)


def test_invalid_display_order_raises():
    raw = _minimal()
    raw["menus"][0]["display_order"] = "first"
    with pytest.raises(CatalogConfigError, match="display_order must be an integer"):
        parse_catalog(raw)
