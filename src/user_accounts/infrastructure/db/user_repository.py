"""SQLAlchemy adapter for user record persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast

import sqlalchemy as sa
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from user_accounts.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    NewUserRecord,
    UserRecord,
    UserRecordMissingError,
    UserRepositoryPort,
)
from user_accounts.infrastructure.db.metadata import users

_USER_COLUMNS = (
    users.c.id,
    users.c.first_name,
    users.c.last_name,
    users.c.email,
    users.c.phone,
    users.c.address,
    users.c.active,
    users.c.created_at,
    users.c.updated_at,
)


def _is_duplicate_email_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "email" in message


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_user_record(row: RowMapping) -> UserRecord:
    return UserRecord(
        user_id=int(row["id"]),
        first_name=cast(str, row["first_name"]),
        last_name=cast(str, row["last_name"]),
        email=cast(str, row["email"]),
        phone=cast("str | None", row["phone"]),
        address=cast("str | None", row["address"]),
        active=bool(row["active"]),
        created_at=_as_utc(cast(datetime, row["created_at"])),
        updated_at=_as_utc(cast(datetime, row["updated_at"])),
    )


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_id(self, *, user_id: int) -> UserRecord | None:
        """Return user by id or None."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.id == user_id).limit(1)
        return await self._fetch_one(statement)

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        """Return user owning the exact email or None."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.email == email).limit(1)
        return await self._fetch_one(statement)

    async def exists_by_email(self, *, email: str) -> bool:
        """Return whether any user owns the email."""

        statement = sa.select(sa.exists().where(users.c.email == email))
        return await self._fetch_flag(statement)

    async def exists_by_email_excluding_id(self, *, email: str, user_id: int) -> bool:
        """Return whether a user other than `user_id` owns the email."""

        statement = sa.select(
            sa.exists().where(users.c.email == email, users.c.id != user_id)
        )
        return await self._fetch_flag(statement)

    async def save(self, record: NewUserRecord | UserRecord) -> UserRecord:
        """Insert a new record or overwrite a persisted one in one statement."""

        if isinstance(record, NewUserRecord):
            statement = (
                sa.insert(users)
                .values(
                    first_name=record.first_name,
                    last_name=record.last_name,
                    email=record.email,
                    phone=record.phone,
                    address=record.address,
                    active=record.active,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
                .returning(*_USER_COLUMNS)
            )
        else:
            statement = (
                sa.update(users)
                .where(users.c.id == record.user_id)
                .values(
                    first_name=record.first_name,
                    last_name=record.last_name,
                    email=record.email,
                    phone=record.phone,
                    address=record.address,
                    active=record.active,
                    updated_at=record.updated_at,
                )
                .returning(*_USER_COLUMNS)
            )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().first()
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_email_error(error):
                    raise DuplicateUserEmailError(email=record.email) from error
                raise

        if row is None:
            assert isinstance(record, UserRecord)
            raise UserRecordMissingError(user_id=record.user_id)
        return _to_user_record(row)

    async def delete(self, record: UserRecord) -> None:
        """Remove one persisted record permanently."""

        statement = sa.delete(users).where(users.c.id == record.user_id)
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def find_all(self) -> list[UserRecord]:
        """Return every user in insertion order."""

        statement = sa.select(*_USER_COLUMNS).order_by(users.c.id.asc())
        return await self._fetch_many(statement)

    async def find_by_active(self, *, active: bool) -> list[UserRecord]:
        """Return users whose active flag matches, in insertion order."""

        statement = (
            sa.select(*_USER_COLUMNS)
            .where(users.c.active == active)
            .order_by(users.c.id.asc())
        )
        return await self._fetch_many(statement)

    async def count(self) -> int:
        """Return the number of persisted users."""

        statement = sa.select(sa.func.count()).select_from(users)
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return int(result.scalar_one())

    async def _fetch_one(self, statement: sa.Select[tuple[object, ...]]) -> UserRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)

    async def _fetch_many(self, statement: sa.Select[tuple[object, ...]]) -> list[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_user_record(row) for row in result.mappings().all()]

    async def _fetch_flag(self, statement: sa.Select[tuple[bool]]) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return bool(result.scalar_one())
