from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """The four mutually exclusive actor classes. A user holds exactly one."""

    ADMIN = "admin"
    MANAGER = "manager"
    SALESPERSON = "salesperson"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: object) -> Role | None:
        """Return the matching role, or None for anything outside the enumeration."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


@dataclass(frozen=True)
class Permission:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class PermissionCategory:
    """Display grouping only; categories carry no enforcement semantics."""

    id: str
    name: str
    description: str
    permissions: tuple[Permission, ...] = ()


@dataclass(frozen=True)
class MenuFeature:
    """
    A navigable feature.

    ``required_permissions`` has OR semantics; an empty tuple means "no
    precondition beyond the menu grant itself".
    """

    id: str
    name: str
    path: str
    display_order: int
    required_permissions: tuple[str, ...] = ()
    icon: str = ""
    description: str = ""


@dataclass(frozen=True)
class FeaturePermissionMapping:
    """Permissions a feature exercises internally. Audit metadata, never a gate."""

    feature_id: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    description: str = ""
