from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from user_accounts.application.dto.user_models import UserRequest
from user_accounts.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    NewUserRecord,
    UserRecord,
    UserRecordMissingError,
)
from user_accounts.application.services.user_service import (
    EmailAlreadyExistsError,
    UserNotFoundError,
    UserService,
    UserValidationError,
)

_T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class SteppingClock:
    def __init__(self, start: datetime = _T0, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@dataclass
class FakeUserRepository:
    users: dict[int, UserRecord] = field(default_factory=dict)
    next_id: int = 1
    saved: list[NewUserRecord | UserRecord] = field(default_factory=list)
    deleted: list[int] = field(default_factory=list)
    active_queries: list[bool] = field(default_factory=list)
    missing_on_update: bool = False
    duplicate_on_save: bool = False

    async def find_by_id(self, *, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    async def exists_by_email(self, *, email: str) -> bool:
        return await self.find_by_email(email=email) is not None

    async def exists_by_email_excluding_id(self, *, email: str, user_id: int) -> bool:
        return any(
            user.email == email and user.user_id != user_id for user in self.users.values()
        )

    async def save(self, record: NewUserRecord | UserRecord) -> UserRecord:
        self.saved.append(record)
        if self.duplicate_on_save:
            raise DuplicateUserEmailError(email=record.email)
        if isinstance(record, NewUserRecord):
            stored = UserRecord(
                user_id=self.next_id,
                first_name=record.first_name,
                last_name=record.last_name,
                email=record.email,
                phone=record.phone,
                address=record.address,
                active=record.active,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            self.next_id += 1
        else:
            if self.missing_on_update or record.user_id not in self.users:
                raise UserRecordMissingError(user_id=record.user_id)
            stored = replace(record, created_at=self.users[record.user_id].created_at)
        self.users[stored.user_id] = stored
        return stored

    async def delete(self, record: UserRecord) -> None:
        self.deleted.append(record.user_id)
        self.users.pop(record.user_id, None)

    async def find_all(self) -> list[UserRecord]:
        return [self.users[key] for key in sorted(self.users)]

    async def find_by_active(self, *, active: bool) -> list[UserRecord]:
        self.active_queries.append(active)
        return [user for user in await self.find_all() if user.active is active]

    async def count(self) -> int:
        return len(self.users)


def _request(
    *,
    first_name: str = "John",
    last_name: str = "Doe",
    email: str = "john@x.com",
    phone: str | None = None,
    address: str | None = None,
) -> UserRequest:
    return UserRequest(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        address=address,
    )


def _service(
    users: FakeUserRepository | None = None,
    clock: SteppingClock | None = None,
) -> tuple[UserService, FakeUserRepository]:
    repository = users or FakeUserRepository()
    return UserService(users=repository, now=clock or SteppingClock()), repository


@pytest.mark.asyncio
async def test_create_user_persists_active_user_with_equal_timestamps() -> None:
    service, users = _service()

    created = await service.create_user(
        payload=_request(phone="123-456-7890", address="123 Main St")
    )

    assert created.id == 1
    assert created.first_name == "John"
    assert created.last_name == "Doe"
    assert created.email == "john@x.com"
    assert created.phone == "123-456-7890"
    assert created.address == "123 Main St"
    assert created.active is True
    assert created.created_at == created.updated_at == _T0
    assert isinstance(users.saved[0], NewUserRecord)


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_email_with_conflict_message() -> None:
    service, users = _service()
    await service.create_user(payload=_request())

    with pytest.raises(EmailAlreadyExistsError) as exc_info:
        await service.create_user(payload=_request(first_name="Johnny"))

    assert str(exc_info.value) == "email already exists: john@x.com"
    assert exc_info.value.email == "john@x.com"
    assert len(users.users) == 1


@pytest.mark.asyncio
async def test_create_user_translates_store_unique_violation_into_conflict() -> None:
    service, users = _service(FakeUserRepository(duplicate_on_save=True))

    with pytest.raises(EmailAlreadyExistsError):
        await service.create_user(payload=_request())

    assert users.users == {}


@pytest.mark.asyncio
async def test_create_user_with_blank_first_name_reports_validation_and_persists_nothing() -> None:
    service, users = _service()

    with pytest.raises(UserValidationError) as exc_info:
        await service.create_user(payload=_request(first_name=""))

    assert any(error.startswith("firstName:") for error in exc_info.value.errors)
    assert users.saved == []


@pytest.mark.asyncio
async def test_create_user_collects_violations_for_every_field() -> None:
    service, users = _service()

    with pytest.raises(UserValidationError) as exc_info:
        await service.create_user(
            payload=_request(first_name="J", last_name="D", email="not-an-email")
        )

    assert exc_info.value.errors == [
        "firstName: First name must be between 2 and 50 characters",
        "lastName: Last name must be between 2 and 50 characters",
        "email: Email should be valid",
    ]
    assert users.saved == []


@pytest.mark.asyncio
async def test_get_user_round_trips_created_fields() -> None:
    service, _ = _service()
    created = await service.create_user(payload=_request(address="Somewhere 1"))

    fetched = await service.get_user(user_id=created.id)

    assert fetched == created
    assert fetched.active is True
    assert fetched.created_at == fetched.updated_at


@pytest.mark.asyncio
async def test_get_user_raises_not_found_for_unknown_id() -> None:
    service, _ = _service()

    with pytest.raises(UserNotFoundError) as exc_info:
        await service.get_user(user_id=999)

    assert exc_info.value.user_id == 999
    assert "999" in str(exc_info.value)


@pytest.mark.asyncio
async def test_update_user_overwrites_fields_and_preserves_identity() -> None:
    service, _ = _service()
    created = await service.create_user(payload=_request(phone="111"))

    updated = await service.update_user(
        user_id=created.id,
        payload=_request(
            first_name="Jane",
            last_name="Smith",
            email="jane@x.com",
            phone=None,
            address="456 Oak Ave",
        ),
    )

    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at
    assert updated.first_name == "Jane"
    assert updated.last_name == "Smith"
    assert updated.email == "jane@x.com"
    assert updated.phone is None
    assert updated.address == "456 Oak Ave"
    assert updated.active is True


@pytest.mark.asyncio
async def test_update_user_allows_keeping_own_email() -> None:
    service, _ = _service()
    created = await service.create_user(payload=_request())

    updated = await service.update_user(
        user_id=created.id,
        payload=_request(first_name="Johnny"),
    )

    assert updated.email == "john@x.com"
    assert updated.first_name == "Johnny"


@pytest.mark.asyncio
async def test_update_user_rejects_email_owned_by_another_user() -> None:
    service, users = _service()
    await service.create_user(payload=_request())
    other = await service.create_user(payload=_request(email="other@x.com"))
    saves_before = len(users.saved)

    with pytest.raises(EmailAlreadyExistsError) as exc_info:
        await service.update_user(user_id=other.id, payload=_request())

    assert str(exc_info.value) == "email already exists: john@x.com"
    assert len(users.saved) == saves_before
    assert users.users[other.id].email == "other@x.com"


@pytest.mark.asyncio
async def test_update_user_raises_not_found_before_validating() -> None:
    service, users = _service()

    with pytest.raises(UserNotFoundError) as exc_info:
        await service.update_user(user_id=999, payload=_request(first_name=""))

    assert exc_info.value.user_id == 999
    assert users.saved == []


@pytest.mark.asyncio
async def test_update_user_rejects_invalid_fields_without_saving() -> None:
    service, users = _service()
    created = await service.create_user(payload=_request())
    saves_before = len(users.saved)

    with pytest.raises(UserValidationError):
        await service.update_user(user_id=created.id, payload=_request(email=""))

    assert len(users.saved) == saves_before
    assert users.users[created.id].email == "john@x.com"


@pytest.mark.asyncio
async def test_update_user_reports_not_found_when_row_vanishes_during_save() -> None:
    service, users = _service()
    created = await service.create_user(payload=_request())
    users.missing_on_update = True

    with pytest.raises(UserNotFoundError):
        await service.update_user(user_id=created.id, payload=_request(first_name="Jane"))


@pytest.mark.asyncio
async def test_updated_at_strictly_increases_when_clock_does_not_move() -> None:
    frozen = SteppingClock(step=timedelta(0))
    service, _ = _service(clock=frozen)
    created = await service.create_user(payload=_request())

    first = await service.deactivate_user(user_id=created.id)
    second = await service.deactivate_user(user_id=created.id)

    assert created.updated_at < first.updated_at < second.updated_at
    assert second.created_at == created.created_at


@pytest.mark.asyncio
async def test_delete_user_removes_record_and_get_then_fails() -> None:
    service, users = _service()
    created = await service.create_user(payload=_request())

    await service.delete_user(user_id=created.id)

    assert users.deleted == [created.id]
    with pytest.raises(UserNotFoundError):
        await service.get_user(user_id=created.id)


@pytest.mark.asyncio
async def test_delete_user_raises_not_found_for_unknown_id() -> None:
    service, users = _service()

    with pytest.raises(UserNotFoundError):
        await service.delete_user(user_id=42)

    assert users.deleted == []


@pytest.mark.asyncio
async def test_activation_cycle_controls_active_listing() -> None:
    service, users = _service()
    created = await service.create_user(payload=_request())

    deactivated = await service.deactivate_user(user_id=created.id)
    assert deactivated.active is False
    assert deactivated.updated_at > created.updated_at
    assert [user.id for user in await service.list_active_users()] == []

    activated = await service.activate_user(user_id=created.id)
    assert activated.active is True
    assert activated.updated_at > deactivated.updated_at
    assert [user.id for user in await service.list_active_users()] == [created.id]
    assert users.active_queries == [True, True]


@pytest.mark.asyncio
async def test_activate_and_deactivate_are_idempotent() -> None:
    service, _ = _service()
    created = await service.create_user(payload=_request())

    assert (await service.activate_user(user_id=created.id)).active is True
    assert (await service.activate_user(user_id=created.id)).active is True
    assert (await service.deactivate_user(user_id=created.id)).active is False
    assert (await service.deactivate_user(user_id=created.id)).active is False


@pytest.mark.asyncio
async def test_activation_raises_not_found_for_unknown_id() -> None:
    service, _ = _service()

    with pytest.raises(UserNotFoundError):
        await service.activate_user(user_id=7)
    with pytest.raises(UserNotFoundError):
        await service.deactivate_user(user_id=7)


@pytest.mark.asyncio
async def test_list_users_returns_store_order() -> None:
    service, _ = _service()
    await service.create_user(payload=_request(email="a@x.com"))
    await service.create_user(payload=_request(email="c@x.com"))
    await service.create_user(payload=_request(email="b@x.com"))

    listed = await service.list_users()

    assert [user.email for user in listed] == ["a@x.com", "c@x.com", "b@x.com"]


@pytest.mark.asyncio
async def test_emails_stay_unique_across_create_and_update_sequences() -> None:
    service, users = _service()
    first = await service.create_user(payload=_request(email="one@x.com"))
    second = await service.create_user(payload=_request(email="two@x.com"))

    for user_id, email in (
        (first.id, "two@x.com"),
        (second.id, "one@x.com"),
        (first.id, "three@x.com"),
        (second.id, "three@x.com"),
        (second.id, "one@x.com"),
    ):
        try:
            await service.update_user(user_id=user_id, payload=_request(email=email))
        except EmailAlreadyExistsError:
            pass
        emails = [user.email for user in users.users.values()]
        assert len(emails) == len(set(emails))

    assert users.users[first.id].email == "three@x.com"
    assert users.users[second.id].email == "one@x.com"
