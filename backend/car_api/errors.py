# ---------------------------------------------------------------------------
# errors.py
#
# Exception handlers. Every failure reaches the client as a status-coded JSON
# body of the form {"detail": ...}; tracebacks are logged, never returned.
#
# HTTPException keeps FastAPI's default handler (it already emits
# {"detail": ...} and forwards headers such as WWW-Authenticate).
# ---------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # Unique or foreign-key violation, e.g. duplicate email or unknown make_id.
    logger.info("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse({"detail": "Conflict"}, status_code=409)


async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"detail": "Database error"}, status_code=500)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(DBAPIError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
