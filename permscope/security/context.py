from __future__ import annotations

from dataclasses import dataclass

from permscope.catalog.types import Role


@dataclass(frozen=True)
class AuthorizationContext:
    """
    Per-session authorization state for one authenticated actor.

    Built once at login from the actor's grant rows and held for the
    session's lifetime. It is not refreshed when an admin edits the grants
    elsewhere; the actor sees the change after logging in again.

    ``role`` is the raw stored value when it is outside the ``Role``
    enumeration; such a context gets no role privileges.
    """

    user_id: int
    role: Role | str
    department_id: int | None
    granted_permissions: frozenset[str]
    granted_menus: frozenset[str]
    display_name: str = ""

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "user_id": self.user_id,
            "role": self.role.value if isinstance(self.role, Role) else self.role,
            "department_id": self.department_id,
            "display_name": self.display_name,
            "granted_permissions": sorted(self.granted_permissions),
            "granted_menus": sorted(self.granted_menus),
        }
