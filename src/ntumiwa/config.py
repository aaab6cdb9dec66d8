from datetime import timedelta
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

MIN_SECRET_KEY_BYTES = 32


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    app_env: Literal["dev", "test", "staging", "prod"] = "prod"
    cors_origins: list[str] = []

    session_secret_key: str  # hex encoded, used to sign session cookies
    session_cookie_name: str = "ntumiwa_session"
    session_cookie_domain: str | None = None
    session_idle_expiration: timedelta = timedelta(hours=1)
    session_absolute_expiration: timedelta = timedelta(hours=8)
    session_gc_interval: timedelta = timedelta(hours=1)

    # Bootstrap administrator, created on startup when both are set
    admin_username: str | None = None
    admin_password: str | None = None

    model_config = {
        "env_file": [".env"],
        "env_prefix": "NTUMIWA_",
        "extra": "ignore",
    }

    @field_validator("session_secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        try:
            decoded = bytes.fromhex(value)
        except ValueError as e:
            raise ValueError("session_secret_key must be hex encoded") from e
        if len(decoded) < MIN_SECRET_KEY_BYTES:
            raise ValueError(f"session_secret_key is {len(decoded)} bytes; want at least {MIN_SECRET_KEY_BYTES}")
        return value

    @field_validator("session_idle_expiration", "session_absolute_expiration", "session_gc_interval")
    @classmethod
    def validate_positive_duration(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        return value

    @property
    def secret_key(self) -> bytes:
        return bytes.fromhex(self.session_secret_key)

    @property
    def cookie_secure(self) -> bool:
        """Session cookies travel over HTTPS only, except in local development and tests."""
        return self.app_env not in ("dev", "test")
