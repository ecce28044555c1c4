"""
Pytest fixtures for the test suite.

Store-backed tests use a fresh in-memory SQLite engine per test. The
engine uses a StaticPool so every session sees the same in-memory
database; writers commit and roll back for real, the way they do in the app.
"""
from __future__ import annotations

from collections.abc import Callable

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from permscope.catalog import CatalogRegistry, Role, load_catalog
from permscope.security.context import AuthorizationContext
from permscope.settings import get_settings


TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def registry() -> CatalogRegistry:
    """The bundled catalog, loaded strictly."""
    return load_catalog(get_settings().resolved_catalog_path(), strict=True)


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from permscope.db.base import Base
    from permscope.models import business, org  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(tables):
    return sessionmaker(bind=tables, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_department(db_session) -> Callable[..., int]:
    from permscope.models.org import Department

    def factory(name: str, code: str | None = None) -> int:
        dept = Department(name=name, code=code or name[:10].upper())
        db_session.add(dept)
        db_session.commit()
        return dept.id

    return factory


@pytest.fixture
def make_user(db_session, registry) -> Callable[..., int]:
    """Create an active user with grants provisioned from the role template."""
    from permscope.models.org import User
    from permscope.services.provisioning import provision_user
    from permscope.store.grants import GrantStore

    counter = {"n": 0}

    def factory(display_name: str, role: Role | str, department_id: int | None = None, *, active: bool = True) -> int:
        counter["n"] += 1
        role_value = role.value if isinstance(role, Role) else role
        user = User(
            username=f"user{counter['n']}",
            display_name=display_name,
            role=role_value,
            department_id=department_id,
            is_active=active,
        )
        db_session.add(user)
        db_session.flush()
        provision_user(GrantStore(db_session), registry, user.id, role_value)
        db_session.commit()
        return user.id

    return factory


def make_context(
    role: Role | str,
    *,
    user_id: int = 1,
    department_id: int | None = None,
    permissions: tuple[str, ...] = (),
    menus: tuple[str, ...] = (),
) -> AuthorizationContext:
    return AuthorizationContext(
        user_id=user_id,
        role=role,
        department_id=department_id,
        granted_permissions=frozenset(permissions),
        granted_menus=frozenset(menus),
    )


@pytest.fixture
def context_factory() -> Callable[..., AuthorizationContext]:
    return make_context
