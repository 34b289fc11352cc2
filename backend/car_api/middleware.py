# ---------------------------------------------------------------------------
# middleware.py
#
# FastAPI / Starlette middleware used by the API service.
#
# Included middleware (outermost first, as installed by main.create_app):
# - AccessLogMiddleware: one log line per request plus an x-server-timing-ms
#   response header.
# - BodySizeLimitMiddleware: rejects requests exceeding MAX_BODY_BYTES based on
#   Content-Length.
# - DbConnectionMiddleware: lends one pooled, freshly configured connection to
#   the request and returns it to the pool however the request ends.
# ---------------------------------------------------------------------------

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import anyio
from fastapi import Request, Response
from sqlalchemy import exc as sa_exc
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from . import db
from .config import DB_MAX_OVERFLOW, DB_POOL_SIZE, DB_POOL_TIMEOUT, MAX_BODY_BYTES

logger = logging.getLogger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, duration and authenticated user per request."""

    def _log(self, request: Request, status_code: int, duration_ms: int) -> None:
        logger.info(
            "%s %s -> %s in %dms user_id=%s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            getattr(request.state, "user_id", None),
        )

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            # Unhandled errors become a 500 in the outer error handler.
            self._log(request, 500, int((time.perf_counter() - start) * 1000))
            raise
        duration_ms = int((time.perf_counter() - start) * 1000)

        self._log(request, response.status_code, duration_ms)
        response.headers["x-server-timing-ms"] = str(duration_ms)
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests above MAX_BODY_BYTES based on Content-Length header."""

    async def dispatch(self, request: Request, call_next: Callable):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
            logger.warning("Rejected %s %s: body of %s bytes", request.method, request.url.path, content_length)
            return JSONResponse({"detail": "Request too large"}, status_code=413)
        return await call_next(request)


def _unavailable() -> JSONResponse:
    return JSONResponse({"detail": "Database unavailable"}, status_code=503)


class DbConnectionMiddleware(BaseHTTPMiddleware):
    """Request-scoped connection: acquire and configure, hand downstream, release.

    Requests queue for a pool slot on the event loop (a semaphore sized like
    the pool), so waiting requests never occupy threadpool workers that
    handlers need to finish and give their connections back. Only the actual
    checkout and release run in the threadpool.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self._slots: Optional[anyio.Semaphore] = None

    def _pool_slots(self) -> anyio.Semaphore:
        # Created on first request, inside the running event loop.
        if self._slots is None:
            self._slots = anyio.Semaphore(max(DB_POOL_SIZE + DB_MAX_OVERFLOW, 1))
        return self._slots

    async def dispatch(self, request: Request, call_next: Callable):
        slots = self._pool_slots()
        try:
            with anyio.fail_after(DB_POOL_TIMEOUT):
                await slots.acquire()
        except TimeoutError:
            logger.error("No database connection free after %ss", DB_POOL_TIMEOUT)
            return _unavailable()

        try:
            try:
                conn = await run_in_threadpool(db.acquire_connection)
            except (sa_exc.TimeoutError, sa_exc.DBAPIError) as exc:
                logger.error("Could not acquire database connection: %s", exc)
                return _unavailable()

            request.state.db = conn
            try:
                return await call_next(request)
            finally:
                request.state.db = None
                await run_in_threadpool(db.release_connection, conn)
        finally:
            slots.release()
