# ---------------------------------------------------------------------------
# models.py
#
# Database models (SQLAlchemy ORM).
#
# Persistent schema of the service: users, car makes and cars. Handlers do not
# load ORM instances; crud.py builds Core statements against these mapped
# columns and runs them on the request's connection.
#
# `car_make` rows are managed outside the API.
# ---------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class User(Base):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    # passlib modular-crypt string, e.g. "$scrypt$ln=14,r=8,p=1$<salt>$<checksum>"
    password: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"


class CarMake(Base):
    __tablename__ = "car_make"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"CarMake(id={self.id!r}, name={self.name!r})"


class Car(Base):
    __tablename__ = "car"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    make_id: Mapped[int] = mapped_column(ForeignKey("car_make.id"), index=True, nullable=False)
    created_user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), index=True, nullable=False)
    date_created: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"Car(id={self.id!r}, model={self.model!r}, make_id={self.make_id!r})"
