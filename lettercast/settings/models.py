from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class DatabaseSettings(BaseModel):
    path: str = "./data/lettercast.db"
    pool_size: int = Field(default=5, ge=1)
    checkout_timeout_s: float = Field(default=5.0, gt=0)


class ApplicationSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)
    base_url: str = "http://127.0.0.1:8000"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class EmailClientSettings(BaseModel):
    base_url: str
    sender_email: str
    authorization_token: SecretStr
    timeout_ms: int = Field(default=10_000, gt=0)
    backend: Literal["http", "dev"] = "http"  # dev only logs


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    email_client: EmailClientSettings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    migrations_dir: str = "migrations"
    broadcast_policy: Literal["fail_fast", "isolate"] = "fail_fast"
