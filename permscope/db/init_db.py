from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from permscope.catalog.registry import CatalogRegistry
from permscope.catalog.types import Role
from permscope.db.base import Base
from permscope.db.session import SessionLocal, engine
from permscope.models.business import Customer, TrainingParticipant
from permscope.models.org import Department, TeamMembership, User
from permscope.services.provisioning import provision_user
from permscope.store.grants import GrantStore


def init_db(registry: CatalogRegistry, *, seed: bool = True) -> None:
    """
    Create tables + seed demo data.

    Small and deterministic: one user per role across three departments,
    with grants provisioned from the role templates.
    """

    Base.metadata.create_all(bind=engine)
    if not seed:
        return

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed_demo_data(db, registry)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Department.id).limit(1)).first() is not None


def seed_demo_data(db: Session, registry: CatalogRegistry) -> None:
    east = Department(name="East Sales", code="EAST", description="East region sales team")
    west = Department(name="West Sales", code="WEST", description="West region sales team")
    ops = Department(name="Operations", code="OPS", description="Back office")
    db.add_all([east, west, ops])
    db.flush()

    admin = User(username="alice_admin", display_name="Alice Admin", role=Role.ADMIN.value, department_id=ops.id)
    manager = User(username="mona_mgr", display_name="Mona Manager", role=Role.MANAGER.value, department_id=east.id)
    sam = User(username="sam_sales", display_name="Sam Seller", role=Role.SALESPERSON.value, department_id=east.id)
    sue = User(username="sue_sales", display_name="Sue Seller", role=Role.SALESPERSON.value, department_id=east.id)
    will = User(username="will_west", display_name="Will West", role=Role.SALESPERSON.value, department_id=west.id)
    eve = User(username="eve_expert", display_name="Eve Expert", role=Role.EXPERT.value, department_id=ops.id)
    users = [admin, manager, sam, sue, will, eve]
    db.add_all(users)
    db.flush()

    east.manager_id = manager.id
    db.add_all([TeamMembership(manager_id=manager.id, member_id=m.id, department_id=east.id) for m in (sam, sue)])

    store = GrantStore(db)
    for user in users:
        provision_user(store, registry, user.id, Role(user.role))

    db.add_all(
        [
            Customer(name="Acme Ltd", phone="555-0101", company="Acme", salesperson_id=sam.id, salesperson_name=sam.display_name),
            Customer(name="Birch & Co", phone="555-0102", company="Birch", salesperson_id=sue.id, salesperson_name=sue.display_name),
            Customer(name="Cobalt Inc", phone="555-0103", company="Cobalt", salesperson_id=will.id, salesperson_name=will.display_name),
        ]
    )
    db.add_all(
        [
            TrainingParticipant(
                name="Pat Buyer",
                session_name="Spring Leadership",
                salesperson_name=sam.display_name,
                actual_price=Decimal("1200.00"),
                payment_amount=Decimal("1500.00"),
                registration_date=date(2026, 3, 2),
            ),
            TrainingParticipant(
                name="Quinn Buyer",
                session_name="Spring Leadership",
                salesperson_name=sue.display_name,
                payment_amount=Decimal("1500.00"),
                registration_date=date(2026, 3, 9),
            ),
            TrainingParticipant(
                name="Robin Buyer",
                session_name="Sales Bootcamp",
                salesperson_name=will.display_name,
                actual_price=Decimal("800.00"),
                registration_date=date(2026, 4, 14),
            ),
        ]
    )

    db.commit()
