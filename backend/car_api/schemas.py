# ---------------------------------------------------------------------------
# schemas.py
#
# Pydantic request/response models.
#
# These schemas define the public API contract:
# - request validation (malformed bodies are rejected before handlers run)
# - response serialization
# - OpenAPI documentation generation
# ---------------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class _StrictIn(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RegisterIn(_StrictIn):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


class LoginIn(_StrictIn):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


class TokenOut(BaseModel):
    jwt: str


class CarCreateIn(_StrictIn):
    make_id: int = Field(gt=0)
    model: str = Field(min_length=1, max_length=100)


class CarUpdateIn(_StrictIn):
    model: str = Field(min_length=1, max_length=100)


class CarOut(BaseModel):
    id: int
    model: str
    # None when the car's make row is missing (LEFT JOIN).
    make_name: Optional[str] = None


class WriteResultOut(BaseModel):
    """Outcome of a single INSERT/UPDATE/DELETE."""

    affected_rows: int
    insert_id: Optional[int] = None


class ErrorOut(BaseModel):
    detail: Any
