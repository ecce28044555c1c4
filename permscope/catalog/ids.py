"""
Permission and menu-feature ids referenced from code.

Every constant here must exist in the loaded catalog; ``load_catalog``
checks this so a typo fails at startup instead of silently resolving to
"not found" during a request.
"""

from __future__ import annotations

CUSTOMER_VIEW = "customer_view"
CUSTOMER_VIEW_ALL = "customer_view_all"
CUSTOMER_EXPORT = "customer_export"

TRAINING_ADD_CUSTOMER = "training_add_customer"

SALESPERSON_VIEW_PERFORMANCE = "salesperson_view_performance"
PERFORMANCE_VIEW_ALL_DEPARTMENTS = "performance_view_all_departments"

PERMISSION_MANAGE = "permission_manage"

PERMISSION_IDS: frozenset[str] = frozenset(
    {
        CUSTOMER_VIEW,
        CUSTOMER_VIEW_ALL,
        CUSTOMER_EXPORT,
        TRAINING_ADD_CUSTOMER,
        SALESPERSON_VIEW_PERFORMANCE,
        PERFORMANCE_VIEW_ALL_DEPARTMENTS,
        PERMISSION_MANAGE,
    }
)

MENU_CUSTOMER_MANAGEMENT = "customer_management"
MENU_SALES_TRACKING = "sales_tracking"
MENU_PERMISSION_MANAGEMENT = "permission_management"

MENU_IDS: frozenset[str] = frozenset(
    {
        MENU_CUSTOMER_MANAGEMENT,
        MENU_SALES_TRACKING,
        MENU_PERMISSION_MANAGEMENT,
    }
)
