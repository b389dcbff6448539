from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WEBHOOK_URL = "https://hooks.example.com/lead-intake"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")

    # Intake webhook
    lead_webhook_url: str = Field(default=DEFAULT_WEBHOOK_URL, validation_alias="LEAD_WEBHOOK_URL")
    webhook_timeout_seconds: int = Field(default=10, validation_alias="WEBHOOK_TIMEOUT_SECONDS")
    webhook_user_agent: str = Field(default="LeadForm-Submit/1.0", validation_alias="WEBHOOK_USER_AGENT")

    # Form behaviour
    lead_source: str = Field(default="landing_page", validation_alias="LEAD_SOURCE")
    strict_choices: bool = Field(default=False, validation_alias="STRICT_CHOICES")
    attribution_storage_key: str = Field(default="lead_utm_params", validation_alias="ATTRIBUTION_STORAGE_KEY")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console", "plain"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("lead_webhook_url")
    def validate_webhook_url(cls, v):
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("lead_webhook_url must be an http(s) URL")
        return v

    @field_validator("webhook_timeout_seconds")
    def validate_webhook_timeout(cls, v):
        if v <= 0:
            raise ValueError("webhook_timeout_seconds must be positive")
        return v

    @property
    def uses_placeholder_webhook(self) -> bool:
        return self.lead_webhook_url == DEFAULT_WEBHOOK_URL


settings = Settings()
