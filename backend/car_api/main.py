# ---------------------------------------------------------------------------
# main.py
#
# FastAPI application entrypoint.
#
# This module wires together:
# - the FastAPI app, its middleware stack and exception handlers
# - the lifespan: create tables at startup, dispose the pool at shutdown
# - public, auth and bearer-protected routes
#
# Route handlers are kept thin; statements live in crud.py. Handlers are plain
# `def` functions so queries and scrypt run in the threadpool.
# ---------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from sqlalchemy.engine import Connection

from . import crud, db
from .auth import get_db, hash_password, issue_token, require_user, verify_password
from .config import LOG_LEVEL, PORT
from .errors import register_exception_handlers
from .middleware import AccessLogMiddleware, BodySizeLimitMiddleware, DbConnectionMiddleware
from .schemas import (
    CarCreateIn,
    CarOut,
    CarUpdateIn,
    ErrorOut,
    LoginIn,
    RegisterIn,
    TokenOut,
    WriteResultOut,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db()
    logger.info("Database ready at %s", db.engine.url.render_as_string(hide_password=True))
    yield
    db.dispose_engine()


_AUTH_ERRORS = {401: {"model": ErrorOut}}


# ---------------------------------------------------------------------------
# Public routes
# ---------------------------------------------------------------------------

public_router = APIRouter()


@public_router.get("/", response_model=List[CarOut])
def list_cars(conn: Connection = Depends(get_db)):
    return crud.list_cars(conn)


# ---------------------------------------------------------------------------
# Auth routes
# ---------------------------------------------------------------------------

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", response_model=WriteResultOut, responses={409: {"model": ErrorOut}})
def register(payload: RegisterIn, conn: Connection = Depends(get_db)):
    return crud.create_user(conn, payload.email.lower(), hash_password(payload.password))


@auth_router.post("/login", response_model=TokenOut, responses=_AUTH_ERRORS)
def login(payload: LoginIn, conn: Connection = Depends(get_db)):
    user = crud.get_user_by_email(conn, payload.email.lower())
    # Same answer for unknown email and wrong password.
    if user is None or not verify_password(payload.password, user["password"]):
        raise HTTPException(
            status_code=401, detail="Invalid credentials", headers={"WWW-Authenticate": "Bearer"}
        )
    return TokenOut(jwt=issue_token(user["id"]))


# ---------------------------------------------------------------------------
# Car routes (bearer token required)
# ---------------------------------------------------------------------------

# FastAPI decodes the JSON body before resolving dependencies: an undecodable
# body is a 400 even without credentials. Decodable bodies, and all schema
# validation, are only looked at after the gate passes.
car_router = APIRouter(tags=["cars"], dependencies=[Depends(require_user)], responses=_AUTH_ERRORS)


@car_router.post("/", response_model=WriteResultOut, responses={409: {"model": ErrorOut}})
def create_car(
    payload: CarCreateIn,
    conn: Connection = Depends(get_db),
    user_id: int = Depends(require_user),
):
    return crud.create_car(conn, user_id, payload.make_id, payload.model)


@car_router.put("/{car_id}", response_model=WriteResultOut)
def update_car(car_id: int, payload: CarUpdateIn, conn: Connection = Depends(get_db)):
    return crud.update_car(conn, car_id, payload.model)


@car_router.delete("/{car_id}", response_model=WriteResultOut)
def delete_car(car_id: int, conn: Connection = Depends(get_db)):
    return crud.delete_car(conn, car_id)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    app = FastAPI(title="Car API", lifespan=lifespan)

    # add_middleware wraps the current stack, so the last one added runs first.
    app.add_middleware(DbConnectionMiddleware)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(AccessLogMiddleware)

    register_exception_handlers(app)

    app.include_router(public_router)
    app.include_router(auth_router)
    app.include_router(car_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
