"""
Role transition workflow.

The only writer of organisational ownership (team memberships and
department manager references). A transition is applied as one database
transaction: either every step lands or none does.

Transitions:

1. any role -> manager: drop the user's existing team memberships, make
   the user the chosen department's manager, add every salesperson of that
   department as a member, then add the manually selected members. The
   membership write is an upsert on (manager, member), so repeating the
   transition creates no duplicates.
2. manager -> any other role: drop the user's team memberships and clear
   any department manager reference pointing at the user.
3. everything else: update role / department only.

When the role actually changes, the user's grants are re-provisioned from
the new role's defaults.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from permscope.catalog.registry import CatalogRegistry
from permscope.catalog.types import Role
from permscope.errors import StoreError, TransitionFailed, UnknownUser
from permscope.store.grants import GrantStore

from .provisioning import provision_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    user_id: int
    old_role: Role | str
    new_role: Role
    department_id: int | None
    member_ids: tuple[int, ...] = ()


class RoleTransitionHandler:
    def __init__(self, registry: CatalogRegistry) -> None:
        self.registry = registry
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _user_lock(self, user_id: int) -> Iterator[None]:
        # Serialises transitions of one user within this process; the row lock
        # taken in the transaction covers other processes on databases that support it.
        with self._locks_guard:
            lock = self._locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    def change_role(
        self,
        db: Session,
        user_id: int,
        new_role: Role,
        department_id: int | None = None,
        member_ids: Iterable[int] = (),
    ) -> TransitionResult:
        member_ids = tuple(dict.fromkeys(m for m in member_ids if m != user_id))
        with self._user_lock(user_id):
            store = GrantStore(db)
            try:
                result = self._apply(store, user_id, new_role, department_id, member_ids)
                store.commit()
            except (UnknownUser, TransitionFailed):
                db.rollback()
                raise
            except StoreError as exc:
                db.rollback()
                logger.error("Role transition rolled back user_id=%s operation=%s", user_id, exc.operation)
                raise TransitionFailed(
                    user_id,
                    f"role transition failed during {exc.operation}; nothing was changed",
                    retryable=exc.retryable,
                ) from exc

        logger.info(
            "Role transition user_id=%s %s -> %s department_id=%s members=%d",
            user_id,
            getattr(result.old_role, "value", result.old_role),
            result.new_role.value,
            result.department_id,
            len(result.member_ids),
        )
        return result

    def _apply(
        self,
        store: GrantStore,
        user_id: int,
        new_role: Role,
        department_id: int | None,
        manual_member_ids: tuple[int, ...],
    ) -> TransitionResult:
        user = store.lock_user(user_id)
        if user is None:
            raise UnknownUser(user_id)

        old_role = Role.parse(user.role) or user.role
        user.role = new_role.value
        user.department_id = department_id
        # Department member lookups below must see this user's new role.
        store.flush()

        members: tuple[int, ...] = ()
        if new_role is Role.MANAGER:
            members = self._seed_team(store, user_id, department_id, manual_member_ids)
        elif old_role is Role.MANAGER:
            store.delete_team_memberships_by_manager(user_id)
            store.clear_department_manager_for(user_id)

        if old_role != new_role:
            provision_user(store, self.registry, user_id, new_role)

        return TransitionResult(
            user_id=user_id,
            old_role=old_role,
            new_role=new_role,
            department_id=department_id,
            member_ids=members,
        )

    def _seed_team(
        self,
        store: GrantStore,
        user_id: int,
        department_id: int | None,
        manual_member_ids: tuple[int, ...],
    ) -> tuple[int, ...]:
        store.delete_team_memberships_by_manager(user_id)
        store.clear_department_manager_for(user_id, keep_department_id=department_id)

        seeded: list[int] = []
        if department_id is not None:
            store.set_department_manager(department_id, user_id)
            seeded = store.list_department_members(department_id)
            for member_id in seeded:
                store.upsert_team_membership(user_id, member_id, department_id)

        extra = [m for m in manual_member_ids if m not in seeded]
        for member_id in extra:
            if store.get_user(member_id) is None:
                raise TransitionFailed(user_id, f"selected team member {member_id} does not exist")
            store.upsert_team_membership(user_id, member_id, department_id)

        return tuple(seeded) + tuple(extra)
