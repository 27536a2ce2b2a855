"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
PortInt = Annotated[int, Field(gt=0, le=65_535)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    api_host: NonEmptyStr = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: PortInt = Field(default=8000, validation_alias="API_PORT")
    seed_sample_users: bool = Field(default=False, validation_alias="SEED_SAMPLE_USERS")
    http_split_status_codes: bool = Field(
        default=False,
        validation_alias="HTTP_SPLIT_STATUS_CODES",
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
