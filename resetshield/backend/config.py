"""Runtime settings for the ResetShield backend."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "ResetShield"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Initial reset requests: 5 per hour, 150s apart, 1 hour lockout.
    request_window_seconds: int = Field(default=3600, gt=0)
    request_min_interval_seconds: int = Field(default=150, gt=0)
    request_max_attempts: int = Field(default=5, gt=0)
    request_lockout_seconds: int = Field(default=3600, gt=0)

    # Code resends: 3 per hour, no spacing, 1 hour lockout.
    resend_window_seconds: int = Field(default=3600, gt=0)
    resend_max_attempts: int = Field(default=3, gt=0)
    resend_lockout_seconds: int = Field(default=3600, gt=0)

    # Unset keeps every device for the life of the process.
    device_idle_eviction_seconds: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_eviction_covers_windows(self) -> "Settings":
        idle = self.device_idle_eviction_seconds
        if idle is not None and idle < max(self.request_window_seconds, self.resend_window_seconds):
            raise ValueError("device_idle_eviction_seconds must be at least as long as the longest window")
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
