"""
Application configuration using pydantic-settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "boxoffice"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Relational store (optional - pages still render without it)
    database_url: str = ""

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""

    # Admin (HTTP Basic)
    admin_username: str = "admin"
    admin_password: str = "admin"
    admin_realm: str = "MWS Admin"

    # Callback URLs are built from forwarded headers unless this is set
    public_base_url: str = ""

    # Event copy
    site_name: str = "MWS Hockey Fundraiser"
    ticket_product_name: str = "MWS Hockey Fundraiser Ticket"
    ticket_product_description: str = "Quinnipiac vs Colgate - Feb 21"
    currency: str = "usd"

    # Branding shell fetched from the main site
    page_shell_url: str = ""
    page_shell_refresh_seconds: int = 30 * 60
    page_shell_timeout_seconds: float = 10.0

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
