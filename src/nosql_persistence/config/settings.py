"""
Settings for the repository layer and its bundled providers.

Values are read from ``PERSISTENCE_*`` environment variables (or a ``.env``
file) so services can tune paging and batching without code changes.
"""
from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator


class PersistenceSettings(BaseSettings):
    """Repository, paging and provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="PERSISTENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Paging
    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=1000, ge=1)

    # Batching (transactional batches are partition scoped and bounded)
    max_batch_size: int = Field(default=100, ge=1)

    # Audit bookkeeping defaults
    system_user: str = Field(default="system")
    default_time_zone: str = Field(default="UTC")

    # PostgreSQL JSONB provider
    postgres_dsn: Optional[str] = Field(default=None)
    postgres_schema: str = Field(default="public", pattern=r"^[a-z_][a-z0-9_]*$")
    pool_min_size: int = Field(default=1, ge=1)
    pool_max_size: int = Field(default=10, ge=1)
    command_timeout: float = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PersistenceSettings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        if self.pool_min_size > self.pool_max_size:
            raise ValueError("pool_min_size cannot exceed pool_max_size")
        return self


@lru_cache()
def get_settings() -> PersistenceSettings:
    """Get cached settings instance."""
    return PersistenceSettings()
