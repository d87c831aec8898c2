from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SeedServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    database_url: str
    database_ssl: bool = False
    database_pool_size: int = Field(default=5, ge=1)

    uuid_extension: str = "uuid-ossp"
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    # Unset: use the bundled placeholder dataset.
    fixtures_path: str | None = None

    log_level: str = "info"
    otel_enabled: bool = False


SETTINGS = SeedServiceSettings()
