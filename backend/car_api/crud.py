# ---------------------------------------------------------------------------
# crud.py
#
# Database operations used by the API routes in main.py.
#
# Design principles:
# - Functions take the request's SQLAlchemy Connection explicitly.
# - One parameterized statement per operation; the engine autocommits it.
# - Database errors (constraint violations, connectivity) propagate unchanged;
#   errors.py turns them into HTTP responses.
# ---------------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection, CursorResult, RowMapping

from .models import Car, CarMake, User
from .schemas import WriteResultOut


def _write_result(result: CursorResult, *, inserted: bool = False) -> WriteResultOut:
    insert_id: Optional[int] = None
    if inserted and result.inserted_primary_key:
        insert_id = result.inserted_primary_key[0]
    return WriteResultOut(affected_rows=result.rowcount, insert_id=insert_id)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def create_user(conn: Connection, email: str, password_hash: str) -> WriteResultOut:
    result = conn.execute(insert(User).values(email=email, password=password_hash))
    return _write_result(result, inserted=True)


def get_user_by_email(conn: Connection, email: str) -> Optional[RowMapping]:
    return conn.execute(
        select(User.id, User.email, User.password).where(User.email == email)
    ).mappings().first()


# ---------------------------------------------------------------------------
# Cars
# ---------------------------------------------------------------------------


def list_cars(conn: Connection) -> List[Dict[str, Any]]:
    """All cars with their make name (NULL when the make row is missing)."""
    q = (
        select(Car.id, Car.model, CarMake.name.label("make_name"))
        .select_from(Car)
        .outerjoin(CarMake, Car.make_id == CarMake.id)
        .order_by(Car.id)
    )
    return [dict(row) for row in conn.execute(q).mappings()]


def create_car(conn: Connection, created_user_id: int, make_id: int, model: str) -> WriteResultOut:
    result = conn.execute(
        insert(Car).values(
            created_user_id=created_user_id,
            make_id=make_id,
            model=model,
            date_created=func.now(),
        )
    )
    return _write_result(result, inserted=True)


def update_car(conn: Connection, car_id: int, model: str) -> WriteResultOut:
    # No ownership check: any authenticated user may edit any car.
    result = conn.execute(update(Car).where(Car.id == car_id).values(model=model))
    return _write_result(result)


def delete_car(conn: Connection, car_id: int) -> WriteResultOut:
    result = conn.execute(delete(Car).where(Car.id == car_id))
    return _write_result(result)
