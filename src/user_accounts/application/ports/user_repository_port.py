"""Port for user record persistence used by the user domain service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class DuplicateUserEmailError(RuntimeError):
    """Raised by stores when the unique email constraint rejects a write."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"duplicate user email: {email}")
        self.email = email


class UserRecordMissingError(LookupError):
    """Raised by stores when an update targets a row that no longer exists."""

    def __init__(self, *, user_id: int) -> None:
        super().__init__(f"user record missing: {user_id}")
        self.user_id = user_id


@dataclass(frozen=True)
class NewUserRecord:
    """User record that has not been persisted yet and carries no id."""

    first_name: str
    last_name: str
    email: str
    phone: str | None
    address: str | None
    active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserRecord:
    """Persisted user record."""

    user_id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None
    address: str | None
    active: bool
    created_at: datetime
    updated_at: datetime


class UserRepositoryPort(Protocol):
    """User record store contract."""

    async def find_by_id(self, *, user_id: int) -> UserRecord | None:
        """Return user by id or None."""

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        """Return user owning the exact email or None."""

    async def exists_by_email(self, *, email: str) -> bool:
        """Return whether any user owns the email."""

    async def exists_by_email_excluding_id(self, *, email: str, user_id: int) -> bool:
        """Return whether a user other than `user_id` owns the email."""

    async def save(self, record: NewUserRecord | UserRecord) -> UserRecord:
        """Insert a new record or overwrite a persisted one, returning the stored row."""

    async def delete(self, record: UserRecord) -> None:
        """Remove one persisted record permanently."""

    async def find_all(self) -> list[UserRecord]:
        """Return every user in insertion order."""

    async def find_by_active(self, *, active: bool) -> list[UserRecord]:
        """Return users whose active flag matches, in insertion order."""

    async def count(self) -> int:
        """Return the number of persisted users."""
