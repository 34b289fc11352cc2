# ---------------------------------------------------------------------------
# auth.py
#
# Authentication and authorization helpers.
#
# This module implements:
# - Connection dependency (`get_db`) handing handlers the request's connection
# - Password hashing/verification (scrypt via passlib)
# - Stateless bearer tokens (HS256 JWT via python-jose)
# - The auth gate (`require_user`) attached to protected routers
#
# Tokens are not stored anywhere: a token is valid while its signature checks
# out and it has not expired. There is no revocation.
# ---------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from passlib.context import CryptContext
from sqlalchemy.engine import Connection

from .config import JWT_ALGORITHM, JWT_KEY, JWT_TTL_HOURS, SCRYPT_LOG_N, SCRYPT_P, SCRYPT_R

# passlib expresses the scrypt cost as log2(N).
pwd_context = CryptContext(
    schemes=["scrypt"],
    scrypt__default_rounds=SCRYPT_LOG_N,
    scrypt__block_size=SCRYPT_R,
    scrypt__parallelism=SCRYPT_P,
)


def get_db(request: Request) -> Connection:
    """FastAPI dependency returning the connection DbConnectionMiddleware attached."""
    conn: Optional[Connection] = getattr(request.state, "db", None)
    if conn is None:
        raise RuntimeError("No database connection on request; is DbConnectionMiddleware installed?")
    return conn


def hash_password(password: str) -> str:
    """Hash a plaintext password using scrypt with the configured cost."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a stored scrypt hash."""
    return pwd_context.verify(password, password_hash)


def issue_token(user_id: int, now: Optional[datetime] = None) -> str:
    """Sign a token whose subject is `user_id`, valid for JWT_TTL_HOURS."""
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=JWT_TTL_HOURS),
    }
    return jwt.encode(claims, JWT_KEY, algorithm=JWT_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def decode_token(token: str) -> int:
    """Verify signature and expiry and return the subject as a user id."""
    try:
        claims = jwt.decode(token, JWT_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid token")

    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid token")


def require_user(request: Request) -> int:
    """Auth gate: accept only `Authorization: Bearer <jwt>` and record the identity."""
    header = request.headers.get("authorization")
    if not header:
        raise _unauthorized("Authorization header is required")

    scheme, _, credential = header.partition(" ")
    if scheme != "Bearer" or not credential.strip():
        raise _unauthorized("Invalid authorization")

    user_id = decode_token(credential.strip())
    request.state.user_id = user_id
    return user_id
