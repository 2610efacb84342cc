"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from invoker.domain.models import RetryOptions


class BackendSettings(BaseModel):
    base_url: AnyHttpUrl = Field(default="http://localhost:8003")
    timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    auth_token: SecretStr | None = None

    @field_validator("auth_token", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BatchSettings(BaseModel):
    max_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Cap on simultaneous batch operations; unbounded when unset.",
    )


class InvokerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="INVOKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__"
    )

    retry: RetryOptions = Field(default_factory=RetryOptions)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)


@lru_cache
def get_settings() -> InvokerSettings:
    """Return cached settings instance."""

    return InvokerSettings()


__all__ = [
    "BackendSettings",
    "BatchSettings",
    "InvokerSettings",
    "get_settings",
]
