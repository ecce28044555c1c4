from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from permscope.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Owning salesperson; scoping keys on the id, the name is display only.
    salesperson_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    salesperson_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class TrainingParticipant(Base):
    __tablename__ = "training_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    session_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Participants record the salesperson by name; aggregation resolves it.
    salesperson_name: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    actual_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    registration_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
