# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/hotel_pms.db",
        description="Database URL (Postgres in production, SQLite locally)",
    )

    # Security
    encryption_key: str = Field(
        default="",
        description="Fernet encryption key for channel import URLs",
    )

    # Application mode
    standalone_mode: bool = Field(
        default=False,
        description="Disable upstream auth headers for development",
    )

    # Hotel identity
    hotel_name: str = Field(
        default="AMP Lodge",
        description="Hotel name used in notifications and calendars",
    )
    currency: str = Field(
        default="GHS",
        description="ISO currency code for prices",
    )
    admin_email: str = Field(
        default="",
        description="Email of the staff member owning online bookings",
    )
    hotel_alert_email: str = Field(
        default="",
        description="Recipient of new online booking alerts",
    )
    public_base_url: str = Field(
        default="",
        description="Public base URL used when building iCal export links",
    )

    # Email (Resend)
    resend_api_key: str = Field(
        default="",
        description="Resend API key",
    )
    email_from: str = Field(
        default="AMP Lodge <noreply@updates.amplodge.org>",
        description="Default sender for outgoing email",
    )

    # SMS (Arkesel)
    arkesel_api_key: str = Field(
        default="",
        description="Arkesel SMS API key",
    )
    arkesel_sender_id: str = Field(
        default="HobbySky",
        description="Arkesel sender ID",
    )
    sms_country_code: str = Field(
        default="233",
        description="Country calling code prepended to local numbers",
    )

    # Channel sync
    channel_sync_interval_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Background channel calendar sync interval in minutes",
    )
    ical_export_past_days: int = Field(
        default=30,
        ge=0,
        description="Days before today included in exported calendars",
    )
    ical_export_future_days: int = Field(
        default=365,
        ge=1,
        description="Days after today included in exported calendars",
    )

    # Server configuration
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8099,
        description="Server port",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings instance.
    """
    return Settings()
