"""
Application settings loaded from the environment.

A single ``Settings`` instance is built at start-up (see ``main.create_app``) and
handed to every component that needs credentials or policy values.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the checkout and webhook services."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    environment: str = Field("development", description="Deployment environment name")

    # Stripe
    stripe_secret_key: str = Field("", description="Stripe secret API key (sk_...)")
    stripe_webhook_secret: str = Field("", description="Webhook signing secret (whsec_...)")
    stripe_api_version: str = Field("2024-06-20", description="Pinned Stripe API version")
    stripe_webhook_tolerance: int = Field(
        300, ge=1, description="Maximum accepted age of a signed webhook, in seconds"
    )

    # Checkout
    checkout_min_amount_cents: int = Field(50, ge=1)
    checkout_max_amount_cents: int = Field(99_999_999, ge=1)
    checkout_default_currency: str = Field("cad", min_length=3, max_length=3)
    checkout_default_description: str = "Gabriola Directory - Listings & Ads"
    checkout_success_url: str = "https://gabrioladirectory.ca/?paid=1"
    checkout_cancel_url: str = "https://gabrioladirectory.ca/?paid=0"
    cors_allow_origins: str = Field(
        "https://gabrioladirectory.ca,https://www.gabrioladirectory.ca",
        description="Comma-separated list of origins allowed to call the checkout endpoint",
    )

    # Notification sinks (each one is disabled while unset)
    gsheets_webhook_url: Optional[str] = None
    resend_api_key: Optional[str] = None
    resend_from: str = "no-reply@gabrioladirectory.ca"
    resend_to: str = "info@gabrioladirectory.ca"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    notify_sms_to: Optional[str] = None
    notify_site_name: str = "Gabriola Directory"
    sink_timeout_seconds: float = Field(5.0, gt=0)

    # Logging / monitoring
    log_level: str = "INFO"
    log_file_path: Optional[str] = "logs/app.log"
    log_json: bool = False
    sentry_dsn: Optional[str] = None
    sentry_environment: str = "development"
    sentry_traces_sample_rate: float = 0.1

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("checkout_default_currency")
    @classmethod
    def lower_currency(cls, v: str) -> str:
        return v.lower()

    @property
    def allowed_origins(self) -> List[str]:
        """Origins parsed from ``cors_allow_origins``."""
        return [o.strip().rstrip("/") for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def twilio_configured(self) -> bool:
        return all([
            self.twilio_account_sid,
            self.twilio_auth_token,
            self.twilio_phone_number,
            self.notify_sms_to,
        ])


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide settings once."""
    return Settings()
