"""
Configuration settings for the Languaro site backend.

Settings are loaded once from the environment (and an optional .env file),
stored on the application, and handed to request handlers as a dependency.
"""
from functools import lru_cache
from typing import List, Optional

from fastapi import Request
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SITE_URL = "https://languaro.com"

USERS_TABLE = "users"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # ✅ Supabase (users, waitlist, support)
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_subscriptions_table: str = Field(default="email_subscriptions", alias="SUPABASE_SUBSCRIPTIONS_TABLE")
    supabase_waitlist_table: str = Field(default="waitlist_emails", alias="SUPABASE_WAITLIST_TABLE")

    # ✅ Supabase licensing project (checkout confirmation)
    supabase_licensing_url: Optional[str] = Field(default=None, alias="SUPABASE_LICENSING_URL")
    supabase_licensing_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_LICENSING_SERVICE_ROLE_KEY"
    )
    supabase_licensing_key: Optional[str] = Field(default=None, alias="SUPABASE_LICENSING_KEY")

    # ✅ Stripe
    stripe_secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: Optional[str] = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")

    # ✅ Admin + dashboard credentials (no defaults: unset means locked)
    admin_secret: Optional[str] = Field(default=None, alias="ADMIN_SECRET")
    hq_user: Optional[str] = Field(default=None, alias="HQ_USER")
    hq_pass: Optional[str] = Field(default=None, alias="HQ_PASS")

    # ✅ Telemetry backend
    telemetry_backend_url: Optional[str] = Field(default=None, alias="TELEMETRY_BACKEND_URL")
    telemetry_read_token: Optional[str] = Field(default=None, alias="TELEMETRY_READ_TOKEN")

    # ✅ Site
    site_url: str = Field(default=DEFAULT_SITE_URL, alias="SITE_URL")
    cors_origins: Optional[str] = Field(default=None, alias="CORS_ORIGINS")

    # ✅ Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def licensing_store_url(self) -> Optional[str]:
        return self.supabase_licensing_url or self.supabase_url

    @property
    def licensing_store_key(self) -> Optional[str]:
        return (
            self.supabase_licensing_service_role_key
            or self.supabase_licensing_key
            or self.supabase_service_role_key
        )

    @property
    def default_origin(self) -> str:
        return (self.site_url or DEFAULT_SITE_URL).rstrip("/")

    @property
    def allowed_origins(self) -> List[str]:
        if self.cors_origins:
            return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        return [self.default_origin]


@lru_cache()
def get_settings() -> Settings:
    """Build settings from the process environment (once)."""
    return Settings()


def settings_dependency(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings
