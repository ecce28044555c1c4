"""
Store boundary over SQLAlchemy.

Reads and writes the grant and organisation tables. Writes never commit;
the caller owns the transaction so a multi-step workflow can commit or
roll back as one unit.

Failures are translated once, here: connectivity and timeout problems
become ``StoreUnavailable`` (retryable), anything else ``StoreError``.
Name lookups that find nothing return ``None``; deciding what a miss means
is the caller's job.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Iterable, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from permscope.catalog.types import Role
from permscope.errors import StoreError, StoreUnavailable
from permscope.models.org import Department, TeamMembership, User, UserMenuAccess, UserPermission

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class UserGrants:
    user_id: int
    display_name: str
    role: str
    department_id: int | None
    permissions: frozenset[str]
    menus: frozenset[str]


def store_call(operation: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> T:
            try:
                return fn(*args, **kwargs)
            except (OperationalError, PoolTimeoutError) as exc:
                logger.warning("Store unavailable operation=%s error=%s", operation, exc.__class__.__name__)
                raise StoreUnavailable(operation) from exc
            except DBAPIError as exc:
                if exc.connection_invalidated:
                    logger.warning("Store connection lost operation=%s", operation)
                    raise StoreUnavailable(operation) from exc
                logger.error("Store error operation=%s error=%s", operation, exc.__class__.__name__)
                raise StoreError(operation) from exc
            except SQLAlchemyError as exc:
                logger.error("Store error operation=%s error=%s", operation, exc.__class__.__name__)
                raise StoreError(operation) from exc

        return wrapper

    return decorator


class GrantStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # ---- Reads ----------------------------------------------------------------------

    @store_call("get_user_grants")
    def get_user_grants(self, user_id: int) -> UserGrants | None:
        """Grant rows plus role/department for an active user; None if unknown or inactive."""
        user = self.db.get(User, user_id)
        if user is None or not user.is_active:
            return None

        permissions, menus = self._grant_rows(user_id)
        return UserGrants(
            user_id=user.id,
            display_name=user.display_name,
            role=user.role,
            department_id=user.department_id,
            permissions=permissions,
            menus=menus,
        )

    @store_call("get_grant_rows")
    def get_grant_rows(self, user_id: int) -> tuple[frozenset[str], frozenset[str]]:
        """Stored (permissions, menus) of any user, active or not."""
        return self._grant_rows(user_id)

    def _grant_rows(self, user_id: int) -> tuple[frozenset[str], frozenset[str]]:
        permissions = self.db.scalars(select(UserPermission.permission_id).where(UserPermission.user_id == user_id))
        menus = self.db.scalars(select(UserMenuAccess.menu_feature_id).where(UserMenuAccess.user_id == user_id))
        return frozenset(permissions), frozenset(menus)

    @store_call("resolve_department_id_by_name")
    def resolve_department_id_by_name(self, name: str) -> int | None:
        return self.db.scalar(select(Department.id).where(Department.name == name.strip()))

    @store_call("resolve_user_id_by_name")
    def resolve_user_id_by_name(self, name: str) -> int | None:
        """Resolve a display name; ambiguous names (shared by several users) do not resolve."""
        matches = list(self.db.scalars(select(User.id).where(User.display_name == name.strip()).limit(2)))
        if len(matches) != 1:
            if matches:
                logger.info("Ambiguous user name %r; treating as unresolved", name)
            return None
        return matches[0]

    @store_call("resolve_users_by_names")
    def resolve_users_by_names(self, names: Iterable[str]) -> dict[str, User]:
        """Bulk variant used by aggregation; names shared by several users are dropped."""
        wanted = {n for n in names if n}
        if not wanted:
            return {}
        found: dict[str, User] = {}
        ambiguous: set[str] = set()
        for user in self.db.scalars(select(User).where(User.display_name.in_(wanted))):
            if user.display_name in found:
                ambiguous.add(user.display_name)
            found[user.display_name] = user
        for name in ambiguous:
            logger.info("Ambiguous user name %r; treating as unresolved", name)
            del found[name]
        return found

    @store_call("department_names")
    def department_names(self) -> dict[int, str]:
        return {d.id: d.name for d in self.db.scalars(select(Department))}

    @store_call("list_department_members")
    def list_department_members(self, department_id: int, role: Role = Role.SALESPERSON) -> list[int]:
        stmt = (
            select(User.id)
            .where(User.department_id == department_id, User.role == role.value, User.is_active.is_(True))
            .order_by(User.id)
        )
        return list(self.db.scalars(stmt))

    @store_call("list_team_members")
    def list_team_members(self, manager_id: int) -> list[int]:
        stmt = select(TeamMembership.member_id).where(TeamMembership.manager_id == manager_id).order_by(TeamMembership.member_id)
        return list(self.db.scalars(stmt))

    # ---- Grant writes ---------------------------------------------------------------

    @store_call("set_user_permissions")
    def set_user_permissions(self, user_id: int, permission_ids: Iterable[str]) -> None:
        self.db.execute(delete(UserPermission).where(UserPermission.user_id == user_id))
        self.db.add_all(UserPermission(user_id=user_id, permission_id=p) for p in sorted(set(permission_ids)))
        self.db.flush()

    @store_call("set_user_menus")
    def set_user_menus(self, user_id: int, feature_ids: Iterable[str]) -> None:
        self.db.execute(delete(UserMenuAccess).where(UserMenuAccess.user_id == user_id))
        self.db.add_all(UserMenuAccess(user_id=user_id, menu_feature_id=m) for m in sorted(set(feature_ids)))
        self.db.flush()

    # ---- Organisation writes --------------------------------------------------------

    @store_call("upsert_team_membership")
    def upsert_team_membership(self, manager_id: int, member_id: int, department_id: int | None) -> None:
        """Idempotent on (manager_id, member_id)."""
        existing = self.db.scalar(
            select(TeamMembership).where(TeamMembership.manager_id == manager_id, TeamMembership.member_id == member_id)
        )
        if existing is None:
            self.db.add(TeamMembership(manager_id=manager_id, member_id=member_id, department_id=department_id))
        else:
            existing.department_id = department_id
        self.db.flush()

    @store_call("delete_team_memberships_by_manager")
    def delete_team_memberships_by_manager(self, manager_id: int) -> int:
        result = self.db.execute(delete(TeamMembership).where(TeamMembership.manager_id == manager_id))
        return result.rowcount or 0

    @store_call("set_department_manager")
    def set_department_manager(self, department_id: int, manager_id: int | None) -> None:
        result = self.db.execute(update(Department).where(Department.id == department_id).values(manager_id=manager_id))
        if not result.rowcount:
            raise StoreError("set_department_manager", f"department {department_id} does not exist")

    @store_call("clear_department_manager_for")
    def clear_department_manager_for(self, manager_id: int, *, keep_department_id: int | None = None) -> int:
        """Clear every department manager reference pointing at ``manager_id``."""
        stmt = update(Department).where(Department.manager_id == manager_id)
        if keep_department_id is not None:
            stmt = stmt.where(Department.id != keep_department_id)
        return self.db.execute(stmt.values(manager_id=None)).rowcount or 0

    @store_call("lock_user")
    def lock_user(self, user_id: int) -> User | None:
        """Load the user row with a row lock (no-op on SQLite) for the current transaction."""
        return self.db.scalar(select(User).where(User.id == user_id).with_for_update())

    @store_call("get_user")
    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    @store_call("flush")
    def flush(self) -> None:
        self.db.flush()

    @store_call("commit")
    def commit(self) -> None:
        self.db.commit()
