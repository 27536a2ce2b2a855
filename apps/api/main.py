"""User accounts API entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from user_accounts.application.ports.user_repository_port import UserRepositoryPort
from user_accounts.application.services.user_service import UserService
from user_accounts.config.settings import load_settings
from user_accounts.infrastructure.db.sample_data import seed_sample_users
from user_accounts.infrastructure.db.session import create_session_factory
from user_accounts.infrastructure.db.user_repository import SqlAlchemyUserRepository
from user_accounts.infrastructure.http.error_mapping import register_error_handlers
from user_accounts.infrastructure.http.user_router import build_user_router
from user_accounts.infrastructure.logging import configure_logging

API_HOST = "0.0.0.0"
API_PORT = 8000
logger = logging.getLogger(__name__)


def build_user_repository(database_url: str) -> SqlAlchemyUserRepository:
    """Build user repository with SQLAlchemy session factory."""

    session_factory = create_session_factory(database_url)
    return SqlAlchemyUserRepository(session_factory)


def create_app(
    *,
    user_repository: UserRepositoryPort | None = None,
    user_service: UserService | None = None,
    database_url: str | None = None,
    seed_sample_users_on_startup: bool | None = None,
    split_status_codes: bool | None = None,
) -> FastAPI:
    """Create FastAPI app exposing the user account API."""

    settings = None
    if (user_repository is None and database_url is None) or (
        seed_sample_users_on_startup is None or split_status_codes is None
    ):
        settings = load_settings()
        if database_url is None:
            database_url = settings.database_url
        if seed_sample_users_on_startup is None:
            seed_sample_users_on_startup = settings.seed_sample_users
        if split_status_codes is None:
            split_status_codes = settings.http_split_status_codes
    if settings is not None:
        configure_logging(level=settings.log_level)

    if user_repository is None:
        assert database_url is not None
        user_repository = build_user_repository(database_url)
    if user_service is None:
        user_service = UserService(users=user_repository)

    assert seed_sample_users_on_startup is not None
    assert split_status_codes is not None
    repository = user_repository
    should_seed = seed_sample_users_on_startup

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if should_seed:
            outcome = await seed_sample_users(users=repository)
            logger.info("sample_users_seed outcome=%s", outcome.value)
        yield

    app = FastAPI(title="User Accounts API", lifespan=lifespan)
    register_error_handlers(app, split_status_codes=split_status_codes)
    app.include_router(build_user_router(user_service=user_service))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run_asgi_server(*, host: str = API_HOST, port: int = API_PORT) -> None:
    """Run the API as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run the user accounts API process."""

    settings = load_settings()
    run_asgi_server(host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
