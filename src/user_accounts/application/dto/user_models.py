"""Pydantic models for the user account request/response contract."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(CamelModel):
    """CamelCase model with strict unknown-field rejection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class UserRequest(CamelModel):
    """Editable user fields submitted for create or update."""

    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    address: str | None = None


class UserResponse(StrictCamelModel):
    """Public representation of one persisted user."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None
    address: str | None
    active: bool
    created_at: datetime
    updated_at: datetime


class ApiResponse(StrictCamelModel, Generic[T]):
    """Uniform success/error envelope wrapping every API result."""

    success: bool
    message: str
    data: T | None = None
    errors: list[str] | None = None
