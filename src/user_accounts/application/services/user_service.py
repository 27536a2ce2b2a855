"""Application service for user account CRUD and activation use-cases."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from user_accounts.application.dto.user_models import UserRequest, UserResponse
from user_accounts.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    NewUserRecord,
    UserRecord,
    UserRecordMissingError,
    UserRepositoryPort,
)
from user_accounts.domain.activation import (
    INITIAL_STATE,
    ActivationCommand,
    apply_command,
    is_active,
    state_from_flag,
)
from user_accounts.domain.user_validation import validate_user_fields

logger = logging.getLogger(__name__)

_MIN_TIMESTAMP_STEP = timedelta(microseconds=1)


class UserServiceError(Exception):
    """Base class for deterministic user domain failures."""


class UserValidationError(UserServiceError, ValueError):
    """Raised when a request carries one or more field-level violations."""

    def __init__(self, *, errors: list[str]) -> None:
        super().__init__("Validation failed")
        self.errors = list(errors)


class UserNotFoundError(UserServiceError, LookupError):
    """Raised when a referenced user does not exist."""

    def __init__(self, *, user_id: int) -> None:
        super().__init__(f"user not found with id: {user_id}")
        self.user_id = user_id


class EmailAlreadyExistsError(UserServiceError):
    """Raised when another user already owns the requested email."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"email already exists: {email}")
        self.email = email


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class UserService:
    """Enforce user invariants and orchestrate record mutations."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._users = users
        self._now = now

    async def list_users(self) -> list[UserResponse]:
        """Return every user in store order."""

        return [_to_user_response(record) for record in await self._users.find_all()]

    async def get_user(self, *, user_id: int) -> UserResponse:
        """Return one user or raise not-found."""

        return _to_user_response(await self._require_existing_user(user_id=user_id))

    async def create_user(self, *, payload: UserRequest) -> UserResponse:
        """Validate, check email uniqueness and persist one new active user."""

        self._require_valid_fields(payload)
        if await self._users.exists_by_email(email=payload.email):
            raise EmailAlreadyExistsError(email=payload.email)

        now = self._now()
        record = NewUserRecord(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
            active=is_active(INITIAL_STATE),
            created_at=now,
            updated_at=now,
        )
        try:
            created = await self._users.save(record)
        except DuplicateUserEmailError as exc:
            raise EmailAlreadyExistsError(email=payload.email) from exc

        logger.info("user_created user_id=%s", created.user_id)
        return _to_user_response(created)

    async def update_user(self, *, user_id: int, payload: UserRequest) -> UserResponse:
        """Overwrite editable fields of one user, keeping id, created_at and active."""

        target = await self._require_existing_user(user_id=user_id)
        self._require_valid_fields(payload)
        if await self._users.exists_by_email_excluding_id(
            email=payload.email,
            user_id=user_id,
        ):
            raise EmailAlreadyExistsError(email=payload.email)

        changed = replace(
            target,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
            updated_at=self._next_updated_at(target),
        )
        updated = await self._save_existing(changed)
        logger.info("user_updated user_id=%s", user_id)
        return _to_user_response(updated)

    async def delete_user(self, *, user_id: int) -> None:
        """Remove one user permanently."""

        target = await self._require_existing_user(user_id=user_id)
        await self._users.delete(target)
        logger.info("user_deleted user_id=%s", user_id)

    async def deactivate_user(self, *, user_id: int) -> UserResponse:
        """Transition one user to inactive; repeating the call is not an error."""

        return await self._apply_activation(
            user_id=user_id,
            command=ActivationCommand.DEACTIVATE,
        )

    async def activate_user(self, *, user_id: int) -> UserResponse:
        """Transition one user to active; repeating the call is not an error."""

        return await self._apply_activation(
            user_id=user_id,
            command=ActivationCommand.ACTIVATE,
        )

    async def list_active_users(self) -> list[UserResponse]:
        """Return active users using the store-level active filter."""

        return [
            _to_user_response(record)
            for record in await self._users.find_by_active(active=True)
        ]

    async def _apply_activation(
        self,
        *,
        user_id: int,
        command: ActivationCommand,
    ) -> UserResponse:
        target = await self._require_existing_user(user_id=user_id)
        next_state = apply_command(state_from_flag(target.active), command)
        changed = replace(
            target,
            active=is_active(next_state),
            updated_at=self._next_updated_at(target),
        )
        updated = await self._save_existing(changed)
        logger.info("user_%sd user_id=%s", command.value, user_id)
        return _to_user_response(updated)

    async def _require_existing_user(self, *, user_id: int) -> UserRecord:
        """Return target user or raise deterministic not-found error."""

        target = await self._users.find_by_id(user_id=user_id)
        if target is None:
            raise UserNotFoundError(user_id=user_id)
        return target

    async def _save_existing(self, record: UserRecord) -> UserRecord:
        """Persist one changed record, translating store conflicts to domain errors."""

        try:
            return await self._users.save(record)
        except DuplicateUserEmailError as exc:
            raise EmailAlreadyExistsError(email=record.email) from exc
        except UserRecordMissingError as exc:
            raise UserNotFoundError(user_id=record.user_id) from exc

    def _require_valid_fields(self, payload: UserRequest) -> None:
        errors = validate_user_fields(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
        )
        if errors:
            raise UserValidationError(errors=errors)

    def _next_updated_at(self, record: UserRecord) -> datetime:
        """Return a mutation timestamp strictly after the record's last update."""

        now = self._now()
        if now <= record.updated_at:
            return record.updated_at + _MIN_TIMESTAMP_STEP
        return now


def _to_user_response(record: UserRecord) -> UserResponse:
    return UserResponse(
        id=record.user_id,
        first_name=record.first_name,
        last_name=record.last_name,
        email=record.email,
        phone=record.phone,
        address=record.address,
        active=record.active,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
