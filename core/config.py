from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    service_name: str = Field(default="redis-metrics-api")

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3000, ge=1, le=65535)

    redis_url: Optional[str] = None
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0)
    redis_username: Optional[str] = None
    redis_password: Optional[SecretStr] = None
    redis_ssl: bool = Field(default=False)
    redis_timeout_seconds: float = Field(default=2.0, gt=0)

    collect_process_metrics: bool = Field(default=True)
    metrics_namespace: str = Field(default="")
    event_loop_lag_interval_seconds: float = Field(default=0.5, gt=0)

    @field_validator("redis_host")
    @classmethod
    def require_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("redis_host must not be blank")
        return value

    @field_validator("redis_url", "redis_username", "redis_password", mode="before")
    @classmethod
    def blank_as_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
