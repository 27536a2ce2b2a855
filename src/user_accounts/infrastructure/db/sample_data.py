"""Seed helper inserting sample user accounts into an empty store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Final

from user_accounts.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    NewUserRecord,
    UserRepositoryPort,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleUser:
    """One seed user definition."""

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    active: bool = True


SAMPLE_USERS: Final[tuple[SampleUser, ...]] = (
    SampleUser(
        first_name="John",
        last_name="Doe",
        email="john.doe@example.com",
        phone="123-456-7890",
        address="123 Main St",
    ),
    SampleUser(
        first_name="Jane",
        last_name="Smith",
        email="jane.smith@example.com",
        phone="987-654-3210",
        address="456 Oak Ave",
    ),
    SampleUser(
        first_name="Bob",
        last_name="Johnson",
        email="bob.johnson@example.com",
        phone="555-123-4567",
        address="789 Pine Rd",
        active=False,
    ),
)


class SampleDataOutcome(StrEnum):
    """Outcome states for one seeding attempt."""

    CREATED = "created"
    SKIPPED_USERS_PRESENT = "skipped_users_present"
    SKIPPED_CONCURRENT_INSERT = "skipped_concurrent_insert"


async def seed_sample_users(
    *,
    users: UserRepositoryPort,
    samples: tuple[SampleUser, ...] = SAMPLE_USERS,
) -> SampleDataOutcome:
    """Insert sample users when the store is empty, otherwise skip."""

    if await users.count() > 0:
        return SampleDataOutcome.SKIPPED_USERS_PRESENT

    now = datetime.now(tz=UTC)
    for sample in samples:
        try:
            await users.save(
                NewUserRecord(
                    first_name=sample.first_name,
                    last_name=sample.last_name,
                    email=sample.email,
                    phone=sample.phone,
                    address=sample.address,
                    active=sample.active,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateUserEmailError:
            logger.warning("sample_users_concurrent_insert email=%s", sample.email)
            return SampleDataOutcome.SKIPPED_CONCURRENT_INSERT

    logger.info("sample_users_created count=%s", len(samples))
    return SampleDataOutcome.CREATED
