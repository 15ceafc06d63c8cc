from __future__ import annotations

import logging
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from price_sentinel.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Alerts
    destination_email: str = Field(
        default="",
        validation_alias=AliasChoices("DESTINATION_EMAIL", "DestinationEmail"),
    )

    # SMTP
    smtp_server: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_SERVER", "EmailSettings__SmtpServer"),
    )
    smtp_port: int = Field(
        default=587,
        validation_alias=AliasChoices("SMTP_PORT", "EmailSettings__Port"),
    )
    sender_email: str = Field(
        default="",
        validation_alias=AliasChoices("SENDER_EMAIL", "EmailSettings__SenderEmail"),
    )
    smtp_username: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_USERNAME", "EmailSettings__SmtpUsername"),
    )
    smtp_password: str = Field(
        default="",
        validation_alias=AliasChoices("SMTP_PASSWORD", "EmailSettings__Password"),
    )

    # Twelve Data
    twelvedata_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("TWELVEDATA_API_KEY", "ApiKey"),
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    def require_destination_email(self) -> str:
        email = self.destination_email.strip()
        if not email:
            raise ConfigurationError("DESTINATION_EMAIL is not configured")
        return email

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump()
        for key in ("smtp_password", "twelvedata_api_key"):
            data[key] = "***" if data[key] else ""
        return data
