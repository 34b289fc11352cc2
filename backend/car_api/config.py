# ---------------------------------------------------------------------------
# config.py
#
# Application configuration.
#
# Every environment-driven setting used by the service lives here: database
# connection and pool bounds, per-connection session settings, token signing,
# password-hashing cost and the listen port.
#
# Values are read from environment variables (a local `.env` file is loaded
# first) with defaults suitable for local development. Integer values that do
# not parse fall back to their defaults.
# ---------------------------------------------------------------------------

from __future__ import annotations

import os

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable with a safe fallback."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_power_of_two(name: str, default: int) -> int:
    """Read an integer that must be a power of two (at least 2); reject anything else."""
    value = _env_int(name, default)
    if value < 2 or value & (value - 1):
        raise ValueError(f"{name} must be a power of two >= 2, got {value}")
    return value


def _database_url() -> str:
    """Prefer an explicit DATABASE_URL, otherwise assemble a MySQL URL from parts."""
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    return URL.create(
        "mysql+pymysql",
        username=os.getenv("DB_USER", "app"),
        password=os.getenv("DB_PASSWORD", "app"),
        host=os.getenv("DB_HOST", "localhost"),
        port=_env_int("DB_PORT", 3306),
        database=os.getenv("DB_NAME", "app"),
    ).render_as_string(hide_password=False)


# SQLAlchemy URL for the relational store.
DATABASE_URL: str = _database_url()

# Pool bounds. Checkout waits at most DB_POOL_TIMEOUT seconds.
DB_POOL_SIZE: int = _env_int("DB_POOL_SIZE", 10)
DB_MAX_OVERFLOW: int = _env_int("DB_MAX_OVERFLOW", 0)
DB_POOL_TIMEOUT: int = _env_int("DB_POOL_TIMEOUT", 30)

# Session settings re-applied on every checked-out connection (MySQL).
DB_SQL_MODE: str = os.getenv("DB_SQL_MODE", "TRADITIONAL")
DB_TIME_ZONE: str = os.getenv("DB_TIME_ZONE", "-08:00")

# Token signing.
JWT_KEY: str = os.getenv("JWT_KEY", "change-me")
JWT_ALGORITHM: str = "HS256"
JWT_TTL_HOURS: int = _env_int("JWT_TTL_HOURS", 24)

# scrypt cost: N must be a power of two, r is the block size, p the parallelism.
SCRYPT_N: int = _env_power_of_two("SCRYPT_N", 16384)
SCRYPT_LOG_N: int = SCRYPT_N.bit_length() - 1
SCRYPT_R: int = _env_int("SCRYPT_R", 8)
SCRYPT_P: int = _env_int("SCRYPT_P", 1)

# 1 MiB request body limit.
MAX_BODY_BYTES: int = _env_int("MAX_BODY_BYTES", 1 * 1024 * 1024)

PORT: int = _env_int("PORT", 3000)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
